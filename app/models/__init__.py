from app.models.idea import Idea
from app.models.suggestion import Department, MessageRole, Suggestion, SuggestionStatus
from app.models.user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "Suggestion",
    "SuggestionStatus",
    "Department",
    "MessageRole",
    "Idea",
]
