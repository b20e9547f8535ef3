from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.suggestion import Department, MessageRole, SuggestionStatus

StatusFilter = Literal["all", "pending", "approved", "rejected", "more_info_needed"]


class AttachmentSchema(BaseModel):
    """Reference to an uploaded file"""

    url: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=255)
    mime_type: str = Field(alias="mimeType")

    class Config:
        populate_by_name = True


class ChatMessageSchema(BaseModel):
    """One conversation message"""

    role: MessageRole
    content: str
    attachments: list[AttachmentSchema] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class CreateSuggestionRequest(BaseModel):
    """Create suggestion request"""

    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=5000)
    department: Department

    class Config:
        str_strip_whitespace = True


class EditSuggestionRequest(BaseModel):
    """Admin metadata correction"""

    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=5000)
    department: Department

    class Config:
        str_strip_whitespace = True


class SuggestionResponse(BaseModel):
    """Suggestion response"""

    id: UUID
    user_id: UUID = Field(serialization_alias="userId")
    title: str
    description: str
    department: str
    status: SuggestionStatus
    conversation: list[ChatMessageSchema]
    conversation_round: int = Field(serialization_alias="conversationRound")
    admin_notes: str | None = Field(serialization_alias="adminNotes")
    prd: str | None
    prd_generated_at: datetime | None = Field(serialization_alias="prdGeneratedAt")
    prd_error: str | None = Field(serialization_alias="prdError")
    archived: bool
    archived_at: datetime | None = Field(serialization_alias="archivedAt")
    reviewed_by: UUID | None = Field(serialization_alias="reviewedBy")
    reviewed_at: datetime | None = Field(serialization_alias="reviewedAt")
    submitted_at: datetime | None = Field(serialization_alias="submittedAt")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    class Config:
        populate_by_name = True
        from_attributes = True


class StatusCounts(BaseModel):
    """Non-archived suggestions per status"""

    pending: int = 0
    approved: int = 0
    rejected: int = 0
    more_info_needed: int = Field(default=0, serialization_alias="moreInfoNeeded")
    total: int = 0

    class Config:
        populate_by_name = True


class SuggestionListResponse(BaseModel):
    """Admin list, split into pending and reviewed partitions"""

    filter: StatusFilter
    items: list[SuggestionResponse]
    pending: list[SuggestionResponse]
    reviewed: list[SuggestionResponse]
    counts: StatusCounts


class DecisionRequest(BaseModel):
    """Admin decision request"""

    status: SuggestionStatus
    notes: str | None = Field(default=None, max_length=5000)


class DecisionResponse(BaseModel):
    """Admin decision result"""

    suggestion: SuggestionResponse
    prd_scheduled: bool = Field(default=False, serialization_alias="prdScheduled")
    warning: str | None = None

    class Config:
        populate_by_name = True


class ChatTurnRequest(BaseModel):
    """Submitter turn"""

    text: str = Field(default="", max_length=4000)
    attachments: list[AttachmentSchema] = Field(default_factory=list)


class ConversationResponse(BaseModel):
    """Conversation state after a start/turn/complete operation"""

    suggestion_id: UUID = Field(serialization_alias="suggestionId")
    status: SuggestionStatus
    conversation: list[ChatMessageSchema]
    conversation_round: int = Field(serialization_alias="conversationRound")
    max_rounds: int = Field(serialization_alias="maxRounds")
    can_complete: bool = Field(serialization_alias="canComplete")
    round_limit_reached: bool = Field(serialization_alias="roundLimitReached")
    submitted_at: datetime | None = Field(default=None, serialization_alias="submittedAt")

    class Config:
        populate_by_name = True


class IdeaResponse(BaseModel):
    """Idea response"""

    id: UUID
    suggestion_id: UUID = Field(serialization_alias="suggestionId")
    title: str
    description: str
    prd: str
    created_by: UUID = Field(serialization_alias="createdBy")
    created_at: datetime = Field(serialization_alias="createdAt")

    class Config:
        populate_by_name = True
        from_attributes = True


class StatusBadgeResponse(BaseModel):
    """Display label and colour for a status"""

    status: SuggestionStatus
    label: str
    color: str
