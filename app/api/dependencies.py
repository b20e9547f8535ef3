"""Shared API dependencies"""

from typing import Annotated, Any
from urllib.parse import urlparse

from arq import ArqRedis, create_pool
from arq.connections import RedisSettings
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.models.user import User
from app.services.auth_service import AuthService

security = HTTPBearer()


# ===== Auth Dependencies =====


def get_auth_service(db: Annotated[AsyncSession, Depends(get_db)]) -> AuthService:
    """AuthService dependency"""
    return AuthService(db)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """Current user"""
    try:
        return await auth_service.get_current_user(credentials.credentials)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "INVALID_TOKEN", "message": "Invalid or expired token"},
        )


async def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Admin role check, before any other processing"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "FORBIDDEN", "message": "Admin access required"},
        )
    return current_user


# ===== Service Error Handling =====

# service error code -> (status_code, error_code, message)
SERVICE_ERROR_MAPPING: dict[str, tuple[int, str, str]] = {
    # common
    "SUGGESTION_NOT_FOUND": (404, "NOT_FOUND", "Suggestion not found"),
    "NOT_SUGGESTION_OWNER": (403, "FORBIDDEN", "Not the owner of this suggestion"),
    # conversation
    "EMPTY_MESSAGE": (400, "BAD_REQUEST", "Message text or attachments required"),
    "ROUND_LIMIT_REACHED": (409, "ROUND_LIMIT_REACHED", "Maximum number of rounds reached"),
    "BELOW_MIN_ROUNDS": (400, "BELOW_MIN_ROUNDS", "At least two rounds are required"),
    "TURN_IN_PROGRESS": (409, "TURN_IN_PROGRESS", "A reply is already being generated"),
    "SUGGESTION_LOCKED": (409, "SUGGESTION_LOCKED", "Suggestion can no longer be changed"),
    "SUGGESTION_ALREADY_REVIEWED": (409, "CONFLICT", "Suggestion has already been reviewed"),
    "ALREADY_SUBMITTED": (409, "ALREADY_SUBMITTED", "Suggestion was already submitted for review"),
    # attachments
    "ATTACHMENT_TOO_LARGE": (413, "ATTACHMENT_TOO_LARGE", "File exceeds the 10MB limit"),
    "ATTACHMENT_TYPE_NOT_ALLOWED": (415, "ATTACHMENT_TYPE_NOT_ALLOWED", "File type not allowed"),
    # review
    "INVALID_TRANSITION": (409, "INVALID_TRANSITION", "Status transition not allowed"),
    "SUGGESTION_ARCHIVED": (409, "SUGGESTION_ARCHIVED", "Suggestion is archived"),
    "ALREADY_ARCHIVED": (409, "ALREADY_ARCHIVED", "Suggestion is already archived"),
    "CANNOT_ARCHIVE_PENDING": (409, "CANNOT_ARCHIVE_PENDING", "Pending suggestions cannot be archived"),
    "SUGGESTION_NOT_APPROVED": (409, "SUGGESTION_NOT_APPROVED", "Suggestion is not approved"),
    "PRD_MISSING": (409, "PRD_MISSING", "Suggestion has no PRD yet"),
    "IDEA_EXISTS": (409, "IDEA_EXISTS", "An idea already exists for this suggestion"),
}


def handle_service_error(error: ValueError, default_message: str = "Validation error") -> None:
    """Convert a service ValueError into an HTTPException

    Args:
        error: ValueError carrying an error code
        default_message: message for unmapped codes

    Raises:
        HTTPException: mapped HTTP error response
    """
    error_code = str(error)

    if error_code in SERVICE_ERROR_MAPPING:
        status_code, code, message = SERVICE_ERROR_MAPPING[error_code]
        raise HTTPException(
            status_code=status_code,
            detail={"error": code, "message": message},
        )

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "VALIDATION_ERROR", "message": default_message},
    )


def ai_unavailable_error(
    message: str = "AI assistant is unavailable, please retry",
    **extra: Any,
) -> HTTPException:
    """502 for a failed AI call; extra fields are merged into the detail"""
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"error": "AI_UNAVAILABLE", "message": message, **extra},
    )


def storage_unavailable_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"error": "STORAGE_UNAVAILABLE", "message": "File storage is unavailable"},
    )


# ===== ARQ Dependencies =====


async def get_arq_pool() -> ArqRedis:
    """ARQ Redis connection pool"""
    settings = get_settings()
    parsed = urlparse(settings.arq_redis_url)

    redis_settings = RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        database=int(parsed.path.lstrip("/") or "0"),
        password=parsed.password,
    )

    return await create_pool(redis_settings)
