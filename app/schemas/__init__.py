from app.schemas.auth import UserResponse
from app.schemas.common import ErrorResponse

__all__ = [
    "ErrorResponse",
    "UserResponse",
]
