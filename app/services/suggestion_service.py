import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.storage import storage_service
from app.models.suggestion import Suggestion, SuggestionStatus
from app.schemas.suggestion import (
    AttachmentSchema,
    CreateSuggestionRequest,
    SuggestionResponse,
)
from app.services.suggestion_lifecycle import is_editable_by_submitter

logger = logging.getLogger(__name__)


class SuggestionService:
    """Submitter-side suggestion operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_suggestion(
        self, data: CreateSuggestionRequest, user_id: UUID
    ) -> SuggestionResponse:
        """Create a suggestion (pending, empty conversation)"""
        suggestion = Suggestion(
            user_id=user_id,
            title=data.title,
            description=data.description,
            department=data.department.value,
            status=SuggestionStatus.PENDING.value,
            conversation=[],
            archived=False,
        )
        self.db.add(suggestion)
        await self.db.flush()
        await self.db.refresh(suggestion)

        logger.info(f"Suggestion created: id={suggestion.id}, department={suggestion.department}")
        return SuggestionResponse.model_validate(suggestion)

    async def list_my_suggestions(self, user_id: UUID) -> list[SuggestionResponse]:
        """Own suggestions, newest first (archived included)"""
        query = (
            select(Suggestion)
            .where(Suggestion.user_id == user_id)
            .order_by(Suggestion.created_at.desc())
        )
        result = await self.db.execute(query)
        return [SuggestionResponse.model_validate(s) for s in result.scalars().all()]

    async def _get_owned_suggestion(self, suggestion_id: UUID, user_id: UUID) -> Suggestion:
        result = await self.db.execute(select(Suggestion).where(Suggestion.id == suggestion_id))
        suggestion = result.scalar_one_or_none()

        if not suggestion:
            raise ValueError("SUGGESTION_NOT_FOUND")
        if suggestion.user_id != user_id:
            raise ValueError("NOT_SUGGESTION_OWNER")

        return suggestion

    async def get_my_suggestion(self, suggestion_id: UUID, user_id: UUID) -> SuggestionResponse:
        suggestion = await self._get_owned_suggestion(suggestion_id, user_id)
        return SuggestionResponse.model_validate(suggestion)

    async def upload_attachment(
        self,
        suggestion_id: UUID,
        user_id: UUID,
        filename: str,
        content_type: str | None,
        data: bytes,
    ) -> AttachmentSchema:
        """Store an attachment for a later turn and return its signed reference

        Ownership, the conversation lock, size and type are all checked
        before anything is sent to storage.

        Raises:
            ValueError: SUGGESTION_NOT_FOUND, NOT_SUGGESTION_OWNER, SUGGESTION_LOCKED,
                ATTACHMENT_TOO_LARGE, ATTACHMENT_TYPE_NOT_ALLOWED
        """
        suggestion = await self._get_owned_suggestion(suggestion_id, user_id)
        if not is_editable_by_submitter(suggestion):
            raise ValueError("SUGGESTION_LOCKED")

        storage_service.validate_attachment(content_type, len(data))

        object_name = storage_service.upload_attachment(
            user_id=str(user_id),
            filename=filename,
            content_type=content_type,
            data=data,
        )
        url = storage_service.get_attachment_url(object_name)

        logger.info(
            f"Attachment uploaded: suggestion={suggestion_id}, user={user_id}, object={object_name}"
        )
        return AttachmentSchema(url=url, name=filename, mime_type=content_type)
