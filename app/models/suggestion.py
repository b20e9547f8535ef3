import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class SuggestionStatus(str, Enum):
    """Suggestion review status"""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    MORE_INFO_NEEDED = "more_info_needed"


class Department(str, Enum):
    """Submitting department"""

    SALES = "salg"
    MARKETING = "marketing"
    PURCHASING = "indkøb"
    DESIGN = "design"
    WAREHOUSE = "lager"


class MessageRole(str, Enum):
    """Author of a conversation message"""

    SUBMITTER = "user"
    ASSISTANT = "assistant"


def count_rounds(conversation: list[dict[str, Any]]) -> int:
    """Number of submitter-authored messages in a conversation log"""
    return sum(1 for message in conversation if message.get("role") == MessageRole.SUBMITTER.value)


class Suggestion(Base):
    """Suggestion model

    The conversation is stored as one JSON array of
    {"role", "content", "attachments"} objects and is always written as a
    whole value.
    """

    __tablename__ = "suggestions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    department: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(30),
        default=SuggestionStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    conversation: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    admin_notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    prd: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    prd_generated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    prd_error: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    archived: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True,
    )
    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    submitter: Mapped["User"] = relationship("User", foreign_keys=[user_id])
    reviewer: Mapped["User"] = relationship("User", foreign_keys=[reviewed_by])

    @property
    def conversation_round(self) -> int:
        return count_rounds(self.conversation or [])

    def __repr__(self) -> str:
        return f"<Suggestion {self.title} ({self.status})>"


# Avoid circular import
from app.models.user import User  # noqa: E402
