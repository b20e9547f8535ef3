"""Submitter suggestion API (creation, attachments, refinement conversation)"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status
from minio.error import S3Error
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    ai_unavailable_error,
    get_current_user,
    handle_service_error,
    storage_unavailable_error,
)
from app.core.database import get_db
from app.models.user import User
from app.schemas import ErrorResponse
from app.schemas.suggestion import (
    AttachmentSchema,
    ChatMessageSchema,
    ChatTurnRequest,
    ConversationResponse,
    CreateSuggestionRequest,
    StatusBadgeResponse,
    SuggestionResponse,
)
from app.services.conversation_engine import ConversationEngine, TurnFailedError
from app.services.status_display import all_status_badges
from app.services.suggestion_service import SuggestionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/suggestions", tags=["Suggestions"])


def get_suggestion_service(db: Annotated[AsyncSession, Depends(get_db)]) -> SuggestionService:
    """SuggestionService dependency"""
    return SuggestionService(db)


def get_conversation_engine(db: Annotated[AsyncSession, Depends(get_db)]) -> ConversationEngine:
    """ConversationEngine dependency"""
    return ConversationEngine(db)


# ===== Suggestions =====


@router.post(
    "",
    response_model=SuggestionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def create_suggestion(
    data: CreateSuggestionRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[SuggestionService, Depends(get_suggestion_service)],
) -> SuggestionResponse:
    """Create a suggestion"""
    return await service.create_suggestion(data, current_user.id)


@router.get(
    "",
    response_model=list[SuggestionResponse],
    responses={401: {"model": ErrorResponse}},
)
async def list_my_suggestions(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[SuggestionService, Depends(get_suggestion_service)],
) -> list[SuggestionResponse]:
    """My suggestions, newest first"""
    return await service.list_my_suggestions(current_user.id)


@router.get(
    "/statuses",
    response_model=list[StatusBadgeResponse],
    responses={401: {"model": ErrorResponse}},
)
async def list_status_badges(
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[StatusBadgeResponse]:
    """Display label and colour per status"""
    return all_status_badges()


@router.post(
    "/{suggestion_id}/attachments",
    response_model=AttachmentSchema,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def upload_attachment(
    suggestion_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[SuggestionService, Depends(get_suggestion_service)],
    file: UploadFile = File(...),
) -> AttachmentSchema:
    """Upload an attachment for the next turn and get a signed URL"""
    data = await file.read()
    try:
        return await service.upload_attachment(
            suggestion_id=suggestion_id,
            user_id=current_user.id,
            filename=file.filename or "attachment",
            content_type=file.content_type,
            data=data,
        )
    except ValueError as e:
        handle_service_error(e)
    except S3Error as e:
        logger.error(f"Attachment upload failed: suggestion={suggestion_id}, error={e}")
        raise storage_unavailable_error()


@router.get(
    "/{suggestion_id}",
    response_model=SuggestionResponse,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def get_suggestion(
    suggestion_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[SuggestionService, Depends(get_suggestion_service)],
) -> SuggestionResponse:
    """Get one of my suggestions"""
    try:
        return await service.get_my_suggestion(suggestion_id, current_user.id)
    except ValueError as e:
        handle_service_error(e)


# ===== Conversation =====


@router.get(
    "/{suggestion_id}/conversation",
    response_model=ConversationResponse,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def get_conversation(
    suggestion_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    engine: Annotated[ConversationEngine, Depends(get_conversation_engine)],
) -> ConversationResponse:
    """Conversation state"""
    try:
        return await engine.get_conversation(suggestion_id, current_user.id)
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "/{suggestion_id}/conversation/start",
    response_model=ConversationResponse,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def start_conversation(
    suggestion_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    engine: Annotated[ConversationEngine, Depends(get_conversation_engine)],
) -> ConversationResponse:
    """Open the conversation with an assistant greeting"""
    try:
        return await engine.start_conversation(suggestion_id, current_user.id)
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "/{suggestion_id}/conversation/turns",
    response_model=ConversationResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def submit_turn(
    suggestion_id: UUID,
    data: ChatTurnRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    engine: Annotated[ConversationEngine, Depends(get_conversation_engine)],
) -> ConversationResponse:
    """Send a message and receive the assistant reply

    On an AI failure the 502 detail carries the provisional conversation
    (with the unconfirmed message) and the unchanged round.
    """
    try:
        result = await engine.submit_turn(
            suggestion_id,
            current_user.id,
            data.text,
            [a.model_dump() for a in data.attachments],
        )
    except ValueError as e:
        handle_service_error(e)
    except TurnFailedError as e:
        raise ai_unavailable_error(
            conversation=[
                ChatMessageSchema.model_validate(m).model_dump(mode="json", by_alias=True)
                for m in e.provisional_conversation
            ],
            conversationRound=e.round,
        )

    return engine.to_response(result.suggestion)


@router.post(
    "/{suggestion_id}/complete",
    response_model=ConversationResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def complete_conversation(
    suggestion_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    engine: Annotated[ConversationEngine, Depends(get_conversation_engine)],
) -> ConversationResponse:
    """Finish the conversation and submit for review"""
    try:
        return await engine.complete(suggestion_id, current_user.id)
    except ValueError as e:
        handle_service_error(e)
