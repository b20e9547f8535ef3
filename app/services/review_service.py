"""Admin review service

Listing, decisions, archival, metadata correction, PRD generation,
export and promotion of approved suggestions to ideas.
"""

import logging
from datetime import datetime, timezone
from typing import Literal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_arq_pool
from app.core.constants import GENERATE_PRD_TASK
from app.core.telemetry import get_app_metrics
from app.infrastructure.agent.llm_client import AICollaboratorError
from app.models.idea import Idea
from app.models.suggestion import Suggestion, SuggestionStatus
from app.schemas.suggestion import (
    DecisionRequest,
    DecisionResponse,
    EditSuggestionRequest,
    IdeaResponse,
    StatusCounts,
    StatusFilter,
    SuggestionListResponse,
    SuggestionResponse,
)
from app.services.export_service import export_filename, render_markdown, render_pdf
from app.services.prd_generator import PRDGenerator
from app.services.suggestion_lifecycle import apply_archive, apply_decision

logger = logging.getLogger(__name__)

PRD_NOT_SCHEDULED_WARNING = (
    "Suggestion approved, but PRD generation could not be scheduled. "
    "Regenerate it manually."
)


class ReviewService:
    """Admin review service"""

    def __init__(self, db: AsyncSession, prd_generator: PRDGenerator | None = None):
        self.db = db
        self._prd_generator = prd_generator

    @property
    def prd_generator(self) -> PRDGenerator:
        if self._prd_generator is None:
            self._prd_generator = PRDGenerator()
        return self._prd_generator

    async def _get_suggestion(self, suggestion_id: UUID) -> Suggestion:
        result = await self.db.execute(select(Suggestion).where(Suggestion.id == suggestion_id))
        suggestion = result.scalar_one_or_none()

        if not suggestion:
            raise ValueError("SUGGESTION_NOT_FOUND")

        return suggestion

    async def count_by_status(self) -> StatusCounts:
        """Non-archived suggestion count per status"""
        query = (
            select(Suggestion.status, func.count(Suggestion.id))
            .where(Suggestion.archived.is_(False))
            .group_by(Suggestion.status)
        )
        result = await self.db.execute(query)
        counts = {status: count for status, count in result.all()}

        return StatusCounts(
            pending=counts.get(SuggestionStatus.PENDING.value, 0),
            approved=counts.get(SuggestionStatus.APPROVED.value, 0),
            rejected=counts.get(SuggestionStatus.REJECTED.value, 0),
            more_info_needed=counts.get(SuggestionStatus.MORE_INFO_NEEDED.value, 0),
            total=sum(counts.values()),
        )

    async def list_suggestions(self, status_filter: StatusFilter = "all") -> SuggestionListResponse:
        """Non-archived suggestions, newest first

        pending and reviewed are partitions of the same filtered set.
        """
        query = select(Suggestion).where(Suggestion.archived.is_(False))
        if status_filter != "all":
            query = query.where(Suggestion.status == status_filter)
        query = query.order_by(Suggestion.created_at.desc())

        result = await self.db.execute(query)
        items = [SuggestionResponse.model_validate(s) for s in result.scalars().all()]

        return SuggestionListResponse(
            filter=status_filter,
            items=items,
            pending=[s for s in items if s.status == SuggestionStatus.PENDING],
            reviewed=[s for s in items if s.status != SuggestionStatus.PENDING],
            counts=await self.count_by_status(),
        )

    async def get_suggestion(self, suggestion_id: UUID) -> SuggestionResponse:
        """Any suggestion by id, archived included"""
        suggestion = await self._get_suggestion(suggestion_id)
        return SuggestionResponse.model_validate(suggestion)

    async def decide(
        self,
        suggestion_id: UUID,
        data: DecisionRequest,
        reviewer_id: UUID,
    ) -> DecisionResponse:
        """Apply an admin decision

        Approval schedules PRD generation once. A scheduling failure does
        not undo the approval; it is reported as a warning.
        """
        suggestion = await self._get_suggestion(suggestion_id)
        previous = apply_decision(suggestion, data.status, data.notes, reviewer_id)

        if data.status == SuggestionStatus.APPROVED:
            suggestion.prd_error = None

        await self.db.commit()
        await self.db.refresh(suggestion)

        metrics = get_app_metrics()
        if metrics:
            metrics.suggestion_transition_total.add(
                1, {"from": previous.value, "to": data.status.value}
            )

        logger.info(
            f"Suggestion decided: suggestion={suggestion_id}, "
            f"{previous.value} -> {data.status.value}, reviewer={reviewer_id}"
        )

        prd_scheduled = False
        warning = None
        if data.status == SuggestionStatus.APPROVED:
            prd_scheduled = await self._enqueue_prd_generation(suggestion_id)
            if not prd_scheduled:
                warning = PRD_NOT_SCHEDULED_WARNING

        return DecisionResponse(
            suggestion=SuggestionResponse.model_validate(suggestion),
            prd_scheduled=prd_scheduled,
            warning=warning,
        )

    async def _enqueue_prd_generation(self, suggestion_id: UUID) -> bool:
        """Queue the PRD task (best-effort)

        Returns:
            whether the job was queued
        """
        try:
            pool = await get_arq_pool()
            await pool.enqueue_job(GENERATE_PRD_TASK, str(suggestion_id))
            await pool.close()

            metrics = get_app_metrics()
            if metrics:
                metrics.arq_task_enqueue_total.add(1, {"task_name": GENERATE_PRD_TASK})

            logger.info(f"{GENERATE_PRD_TASK} enqueued: suggestion={suggestion_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to enqueue {GENERATE_PRD_TASK}: {e}")
            return False

    async def archive(self, suggestion_id: UUID) -> SuggestionResponse:
        suggestion = await self._get_suggestion(suggestion_id)
        apply_archive(suggestion)

        await self.db.flush()
        await self.db.refresh(suggestion)

        logger.info(f"Suggestion archived: suggestion={suggestion_id}, status={suggestion.status}")
        return SuggestionResponse.model_validate(suggestion)

    async def edit(self, suggestion_id: UUID, data: EditSuggestionRequest) -> SuggestionResponse:
        """Correct title, description and department, regardless of status"""
        suggestion = await self._get_suggestion(suggestion_id)

        suggestion.title = data.title
        suggestion.description = data.description
        suggestion.department = data.department.value

        await self.db.flush()
        await self.db.refresh(suggestion)

        logger.info(f"Suggestion edited: suggestion={suggestion_id}")
        return SuggestionResponse.model_validate(suggestion)

    async def generate_prd(self, suggestion_id: UUID) -> SuggestionResponse:
        """Generate and store the PRD for an approved suggestion

        On failure the error is stored on the suggestion, which stays
        approved, and AICollaboratorError is re-raised.
        """
        suggestion = await self._get_suggestion(suggestion_id)

        if suggestion.status != SuggestionStatus.APPROVED.value:
            raise ValueError("SUGGESTION_NOT_APPROVED")

        try:
            prd = await self.prd_generator.generate(
                title=suggestion.title,
                description=suggestion.description,
                conversation=list(suggestion.conversation or []),
                department=suggestion.department,
            )
        except AICollaboratorError as e:
            suggestion.prd_error = str(e) or "PRD generation failed"
            await self.db.commit()
            logger.error(f"PRD generation failed: suggestion={suggestion_id}, error={e}")
            raise

        suggestion.prd = prd
        suggestion.prd_generated_at = datetime.now(timezone.utc)
        suggestion.prd_error = None
        await self.db.commit()
        await self.db.refresh(suggestion)

        logger.info(f"PRD generated: suggestion={suggestion_id}, length={len(prd)}")
        return SuggestionResponse.model_validate(suggestion)

    async def export(
        self,
        suggestion_id: UUID,
        export_format: Literal["md", "pdf"],
    ) -> tuple[bytes, str, str]:
        """Render the suggestion PRD

        Returns:
            (content, media type, file name)
        """
        suggestion = await self._get_suggestion(suggestion_id)

        if not suggestion.prd:
            raise ValueError("PRD_MISSING")

        if export_format == "pdf":
            return render_pdf(suggestion), "application/pdf", export_filename(suggestion, "pdf")
        return (
            render_markdown(suggestion).encode("utf-8"),
            "text/markdown; charset=utf-8",
            export_filename(suggestion, "md"),
        )

    async def create_idea(self, suggestion_id: UUID, admin_id: UUID) -> IdeaResponse:
        """Promote an approved suggestion with a PRD to an idea"""
        suggestion = await self._get_suggestion(suggestion_id)

        if suggestion.status != SuggestionStatus.APPROVED.value:
            raise ValueError("SUGGESTION_NOT_APPROVED")
        if not suggestion.prd:
            raise ValueError("PRD_MISSING")

        existing = await self.db.execute(select(Idea).where(Idea.suggestion_id == suggestion_id))
        if existing.scalar_one_or_none():
            raise ValueError("IDEA_EXISTS")

        idea = Idea(
            suggestion_id=suggestion.id,
            title=suggestion.title,
            description=suggestion.description,
            prd=suggestion.prd,
            created_by=admin_id,
        )
        self.db.add(idea)
        await self.db.flush()
        await self.db.refresh(idea)

        logger.info(f"Idea created: idea={idea.id}, suggestion={suggestion_id}")
        return IdeaResponse.model_validate(idea)
