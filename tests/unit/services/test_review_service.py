"""ReviewService unit tests

- list: filter, archived exclusion, partitions, counts
- decide: transitions, PRD scheduling, scheduling failure
- archive / edit
- generate_prd: success, failure keeps approval
- export / create_idea
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from app.infrastructure.agent.llm_client import AICollaboratorError
from app.models.suggestion import Department, SuggestionStatus
from app.schemas.suggestion import DecisionRequest, EditSuggestionRequest
from app.services.prd_generator import PRDGenerator
from app.services.review_service import PRD_NOT_SCHEDULED_WARNING, ReviewService
from tests.factories import (
    create_suggestion,
    make_conversation,
    make_failing_llm_client,
    make_llm_client,
)

PRD_TEXT = "# PRD\n\n## Summary\nReflective stripes on winter jackets."


@pytest.fixture
async def mixed_suggestions(db_session, test_user):
    now = datetime.now(timezone.utc)
    return {
        "pending": await create_suggestion(
            db_session, test_user, title="Pending idea", created_at=now - timedelta(minutes=4)
        ),
        "approved": await create_suggestion(
            db_session,
            test_user,
            title="Approved idea",
            status=SuggestionStatus.APPROVED,
            created_at=now - timedelta(minutes=3),
        ),
        "rejected": await create_suggestion(
            db_session,
            test_user,
            title="Rejected idea",
            status=SuggestionStatus.REJECTED,
            created_at=now - timedelta(minutes=2),
        ),
        "archived": await create_suggestion(
            db_session,
            test_user,
            title="Archived idea",
            status=SuggestionStatus.APPROVED,
            archived=True,
            created_at=now - timedelta(minutes=1),
        ),
    }


# ===== list =====


async def test_list_all_excludes_archived_newest_first(db_session, mixed_suggestions):
    service = ReviewService(db_session)

    result = await service.list_suggestions("all")

    assert [s.title for s in result.items] == ["Rejected idea", "Approved idea", "Pending idea"]
    assert [s.title for s in result.pending] == ["Pending idea"]
    assert [s.title for s in result.reviewed] == ["Rejected idea", "Approved idea"]


async def test_list_filter_by_status(db_session, mixed_suggestions):
    service = ReviewService(db_session)

    result = await service.list_suggestions("approved")

    assert [s.title for s in result.items] == ["Approved idea"]
    assert result.pending == []
    assert result.filter == "approved"


async def test_list_counts_ignore_filter_and_archived(db_session, mixed_suggestions):
    service = ReviewService(db_session)

    result = await service.list_suggestions("rejected")

    assert result.counts.pending == 1
    assert result.counts.approved == 1
    assert result.counts.rejected == 1
    assert result.counts.more_info_needed == 0
    assert result.counts.total == 3


async def test_get_suggestion_includes_archived(db_session, mixed_suggestions):
    service = ReviewService(db_session)

    result = await service.get_suggestion(mixed_suggestions["archived"].id)

    assert result.archived is True


async def test_get_suggestion_not_found(db_session):
    with pytest.raises(ValueError, match="SUGGESTION_NOT_FOUND"):
        await ReviewService(db_session).get_suggestion(uuid4())


# ===== decide =====


async def test_approve_schedules_prd_once(db_session, test_admin, test_suggestion, mock_arq_pool):
    service = ReviewService(db_session)

    with patch(
        "app.services.review_service.get_arq_pool", AsyncMock(return_value=mock_arq_pool)
    ):
        result = await service.decide(
            test_suggestion.id,
            DecisionRequest(status=SuggestionStatus.APPROVED, notes="great idea"),
            test_admin.id,
        )

    assert result.suggestion.status == SuggestionStatus.APPROVED
    assert result.suggestion.admin_notes == "great idea"
    assert result.suggestion.reviewed_by == test_admin.id
    assert result.prd_scheduled is True
    assert result.warning is None
    mock_arq_pool.enqueue_job.assert_awaited_once_with("generate_prd_task", str(test_suggestion.id))
    mock_arq_pool.close.assert_awaited_once()


async def test_approve_survives_scheduling_failure(db_session, test_admin, test_suggestion):
    service = ReviewService(db_session)

    with patch(
        "app.services.review_service.get_arq_pool",
        AsyncMock(side_effect=ConnectionError("redis down")),
    ):
        result = await service.decide(
            test_suggestion.id,
            DecisionRequest(status=SuggestionStatus.APPROVED),
            test_admin.id,
        )

    assert result.suggestion.status == SuggestionStatus.APPROVED
    assert result.prd_scheduled is False
    assert result.warning == PRD_NOT_SCHEDULED_WARNING

    await db_session.refresh(test_suggestion)
    assert test_suggestion.status == "approved"


async def test_reject_does_not_schedule_prd(db_session, test_admin, test_suggestion, mock_arq_pool):
    service = ReviewService(db_session)

    with patch(
        "app.services.review_service.get_arq_pool", AsyncMock(return_value=mock_arq_pool)
    ):
        result = await service.decide(
            test_suggestion.id,
            DecisionRequest(status=SuggestionStatus.REJECTED, notes="out of scope"),
            test_admin.id,
        )

    assert result.suggestion.status == SuggestionStatus.REJECTED
    assert result.prd_scheduled is False
    mock_arq_pool.enqueue_job.assert_not_called()


async def test_decide_back_to_pending_rejected(db_session, test_admin, test_user):
    suggestion = await create_suggestion(
        db_session, test_user, status=SuggestionStatus.MORE_INFO_NEEDED
    )

    with pytest.raises(ValueError, match="INVALID_TRANSITION"):
        await ReviewService(db_session).decide(
            suggestion.id,
            DecisionRequest(status=SuggestionStatus.PENDING),
            test_admin.id,
        )


async def test_decide_archived(db_session, test_admin, mixed_suggestions):
    with pytest.raises(ValueError, match="SUGGESTION_ARCHIVED"):
        await ReviewService(db_session).decide(
            mixed_suggestions["archived"].id,
            DecisionRequest(status=SuggestionStatus.REJECTED),
            test_admin.id,
        )


# ===== archive / edit =====


async def test_archive_removes_from_listing(db_session, mixed_suggestions):
    service = ReviewService(db_session)

    archived = await service.archive(mixed_suggestions["approved"].id)
    listing = await service.list_suggestions("approved")

    assert archived.archived is True
    assert archived.status == SuggestionStatus.APPROVED
    assert listing.items == []


async def test_archive_pending(db_session, mixed_suggestions):
    with pytest.raises(ValueError, match="CANNOT_ARCHIVE_PENDING"):
        await ReviewService(db_session).archive(mixed_suggestions["pending"].id)


async def test_edit_metadata(db_session, test_user):
    suggestion = await create_suggestion(db_session, test_user, status=SuggestionStatus.REJECTED)

    result = await ReviewService(db_session).edit(
        suggestion.id,
        EditSuggestionRequest(
            title="Reflective jacket stripes",
            description="Reflective stripes on all kids' winter jackets",
            department=Department.PURCHASING,
        ),
    )

    assert result.title == "Reflective jacket stripes"
    assert result.department == "indkøb"
    assert result.status == SuggestionStatus.REJECTED


# ===== generate_prd =====


async def test_generate_prd_stores_document(db_session, test_user):
    suggestion = await create_suggestion(
        db_session,
        test_user,
        status=SuggestionStatus.APPROVED,
        conversation=make_conversation(2),
    )
    service = ReviewService(db_session, prd_generator=PRDGenerator(make_llm_client(PRD_TEXT)))

    result = await service.generate_prd(suggestion.id)

    assert result.prd == PRD_TEXT
    assert result.prd_generated_at is not None
    assert result.prd_error is None


async def test_generate_prd_failure_keeps_approval(db_session, test_user):
    suggestion = await create_suggestion(db_session, test_user, status=SuggestionStatus.APPROVED)
    service = ReviewService(db_session, prd_generator=PRDGenerator(make_failing_llm_client()))

    with pytest.raises(AICollaboratorError):
        await service.generate_prd(suggestion.id)

    await db_session.refresh(suggestion)
    assert suggestion.status == "approved"
    assert suggestion.prd is None
    assert suggestion.prd_error


async def test_generate_prd_requires_approval(db_session, test_suggestion):
    service = ReviewService(db_session, prd_generator=PRDGenerator(make_llm_client(PRD_TEXT)))

    with pytest.raises(ValueError, match="SUGGESTION_NOT_APPROVED"):
        await service.generate_prd(test_suggestion.id)


# ===== export / create_idea =====


async def test_export_markdown(db_session, test_user):
    suggestion = await create_suggestion(
        db_session, test_user, status=SuggestionStatus.APPROVED, prd=PRD_TEXT
    )

    content, media_type, filename = await ReviewService(db_session).export(suggestion.id, "md")

    assert media_type.startswith("text/markdown")
    assert filename == "reflective-winter-jacket-prd.md"
    assert PRD_TEXT.encode() in content


async def test_export_pdf(db_session, test_user):
    suggestion = await create_suggestion(
        db_session, test_user, status=SuggestionStatus.APPROVED, prd=PRD_TEXT
    )

    content, media_type, filename = await ReviewService(db_session).export(suggestion.id, "pdf")

    assert media_type == "application/pdf"
    assert filename.endswith(".pdf")
    assert content.startswith(b"%PDF")


async def test_export_without_prd(db_session, test_suggestion):
    with pytest.raises(ValueError, match="PRD_MISSING"):
        await ReviewService(db_session).export(test_suggestion.id, "md")


async def test_create_idea_once(db_session, test_admin, test_user):
    suggestion = await create_suggestion(
        db_session, test_user, status=SuggestionStatus.APPROVED, prd=PRD_TEXT
    )
    service = ReviewService(db_session)

    idea = await service.create_idea(suggestion.id, test_admin.id)

    assert idea.suggestion_id == suggestion.id
    assert idea.prd == PRD_TEXT
    assert idea.created_by == test_admin.id

    with pytest.raises(ValueError, match="IDEA_EXISTS"):
        await service.create_idea(suggestion.id, test_admin.id)


async def test_create_idea_requires_prd(db_session, test_admin, test_user):
    suggestion = await create_suggestion(db_session, test_user, status=SuggestionStatus.APPROVED)

    with pytest.raises(ValueError, match="PRD_MISSING"):
        await ReviewService(db_session).create_idea(suggestion.id, test_admin.id)
