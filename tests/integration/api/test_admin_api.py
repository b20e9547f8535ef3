"""Admin review API integration tests"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from app.api.v1.endpoints.admin import get_review_service
from app.main import app
from app.models.suggestion import SuggestionStatus
from app.services.prd_generator import PRDGenerator
from app.services.review_service import ReviewService
from tests.factories import create_suggestion, make_failing_llm_client, make_llm_client

BASE_URL = "/api/v1/admin/suggestions"
PRD_TEXT = "# PRD\n\n## Summary\nReflective stripes on winter jackets."


# ===== Access =====


@pytest.mark.asyncio
async def test_non_admin_forbidden(async_client: AsyncClient, auth_headers):
    response = await async_client.get(BASE_URL, headers=auth_headers)

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_non_admin_cannot_decide(async_client: AsyncClient, auth_headers, test_suggestion):
    response = await async_client.post(
        f"{BASE_URL}/{test_suggestion.id}/decision",
        json={"status": "approved"},
        headers=auth_headers,
    )

    assert response.status_code == 403


# ===== Listing =====


@pytest.mark.asyncio
async def test_list_with_counts(async_client: AsyncClient, db_session, test_user, admin_headers):
    await create_suggestion(db_session, test_user, title="Pending idea")
    await create_suggestion(db_session, test_user, title="Approved idea", status=SuggestionStatus.APPROVED)
    await create_suggestion(
        db_session, test_user, title="Archived idea", status=SuggestionStatus.REJECTED, archived=True
    )

    response = await async_client.get(BASE_URL, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["filter"] == "all"
    assert len(data["items"]) == 2
    assert [s["title"] for s in data["pending"]] == ["Pending idea"]
    assert [s["title"] for s in data["reviewed"]] == ["Approved idea"]
    assert data["counts"]["total"] == 2
    assert data["counts"]["moreInfoNeeded"] == 0


@pytest.mark.asyncio
async def test_list_invalid_filter(async_client: AsyncClient, admin_headers):
    response = await async_client.get(f"{BASE_URL}?status=archived", headers=admin_headers)

    assert response.status_code == 422


# ===== Decision =====


@pytest.mark.asyncio
async def test_approve_schedules_prd(async_client: AsyncClient, admin_headers, test_admin, test_suggestion, mock_arq_pool):
    with patch("app.services.review_service.get_arq_pool", AsyncMock(return_value=mock_arq_pool)):
        response = await async_client.post(
            f"{BASE_URL}/{test_suggestion.id}/decision",
            json={"status": "approved", "notes": "  "},
            headers=admin_headers,
        )

    assert response.status_code == 200
    data = response.json()
    assert data["suggestion"]["status"] == "approved"
    assert data["suggestion"]["adminNotes"] is None
    assert data["suggestion"]["reviewedBy"] == str(test_admin.id)
    assert data["prdScheduled"] is True
    mock_arq_pool.enqueue_job.assert_awaited_once_with("generate_prd_task", str(test_suggestion.id))


@pytest.mark.asyncio
async def test_approve_when_queue_down(async_client: AsyncClient, admin_headers, test_suggestion):
    with patch(
        "app.services.review_service.get_arq_pool",
        AsyncMock(side_effect=ConnectionError("redis down")),
    ):
        response = await async_client.post(
            f"{BASE_URL}/{test_suggestion.id}/decision",
            json={"status": "approved"},
            headers=admin_headers,
        )

    assert response.status_code == 200
    assert response.json()["suggestion"]["status"] == "approved"
    assert response.json()["prdScheduled"] is False
    assert response.json()["warning"]


@pytest.mark.asyncio
async def test_decide_final_status_conflict(async_client: AsyncClient, db_session, test_user, admin_headers):
    suggestion = await create_suggestion(db_session, test_user, status=SuggestionStatus.REJECTED)

    response = await async_client.post(
        f"{BASE_URL}/{suggestion.id}/decision",
        json={"status": "approved"},
        headers=admin_headers,
    )

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "INVALID_TRANSITION"


@pytest.mark.asyncio
async def test_decide_unknown_suggestion(async_client: AsyncClient, admin_headers):
    response = await async_client.post(
        f"{BASE_URL}/00000000-0000-0000-0000-000000000000/decision",
        json={"status": "rejected"},
        headers=admin_headers,
    )

    assert response.status_code == 404


# ===== Archive / edit =====


@pytest.mark.asyncio
async def test_archive_reviewed(async_client: AsyncClient, db_session, test_user, admin_headers):
    suggestion = await create_suggestion(db_session, test_user, status=SuggestionStatus.APPROVED)

    response = await async_client.post(f"{BASE_URL}/{suggestion.id}/archive", headers=admin_headers)
    again = await async_client.post(f"{BASE_URL}/{suggestion.id}/archive", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["archived"] is True
    assert response.json()["archivedAt"] is not None
    assert again.status_code == 409
    assert again.json()["detail"]["error"] == "ALREADY_ARCHIVED"


@pytest.mark.asyncio
async def test_archive_pending_conflict(async_client: AsyncClient, admin_headers, test_suggestion):
    response = await async_client.post(f"{BASE_URL}/{test_suggestion.id}/archive", headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "CANNOT_ARCHIVE_PENDING"


@pytest.mark.asyncio
async def test_edit_suggestion(async_client: AsyncClient, admin_headers, test_suggestion):
    response = await async_client.patch(
        f"{BASE_URL}/{test_suggestion.id}",
        json={
            "title": "Reflective jacket stripes",
            "description": "Reflective stripes on all winter jackets",
            "department": "marketing",
        },
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["title"] == "Reflective jacket stripes"
    assert response.json()["department"] == "marketing"


# ===== PRD / export / idea =====


@pytest.mark.asyncio
async def test_regenerate_prd(async_client: AsyncClient, db_session, test_user, admin_headers):
    suggestion = await create_suggestion(db_session, test_user, status=SuggestionStatus.APPROVED)
    app.dependency_overrides[get_review_service] = lambda: ReviewService(
        db_session, prd_generator=PRDGenerator(make_llm_client(PRD_TEXT))
    )

    response = await async_client.post(f"{BASE_URL}/{suggestion.id}/prd", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["prd"] == PRD_TEXT
    assert response.json()["prdGeneratedAt"] is not None


@pytest.mark.asyncio
async def test_regenerate_prd_ai_failure(async_client: AsyncClient, db_session, test_user, admin_headers):
    suggestion = await create_suggestion(db_session, test_user, status=SuggestionStatus.APPROVED)
    app.dependency_overrides[get_review_service] = lambda: ReviewService(
        db_session, prd_generator=PRDGenerator(make_failing_llm_client())
    )

    response = await async_client.post(f"{BASE_URL}/{suggestion.id}/prd", headers=admin_headers)

    assert response.status_code == 502
    assert response.json()["detail"]["error"] == "AI_UNAVAILABLE"

    detail = await async_client.get(f"{BASE_URL}/{suggestion.id}", headers=admin_headers)
    assert detail.json()["status"] == "approved"
    assert detail.json()["prdError"]


@pytest.mark.asyncio
async def test_export_markdown(async_client: AsyncClient, db_session, test_user, admin_headers):
    suggestion = await create_suggestion(
        db_session, test_user, status=SuggestionStatus.APPROVED, prd=PRD_TEXT
    )

    response = await async_client.get(f"{BASE_URL}/{suggestion.id}/export?format=md", headers=admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/markdown")
    assert 'filename="reflective-winter-jacket-prd.md"' in response.headers["content-disposition"]
    assert PRD_TEXT in response.text


@pytest.mark.asyncio
async def test_export_pdf(async_client: AsyncClient, db_session, test_user, admin_headers):
    suggestion = await create_suggestion(
        db_session, test_user, status=SuggestionStatus.APPROVED, prd=PRD_TEXT
    )

    response = await async_client.get(f"{BASE_URL}/{suggestion.id}/export?format=pdf", headers=admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_export_without_prd(async_client: AsyncClient, admin_headers, test_suggestion):
    response = await async_client.get(f"{BASE_URL}/{test_suggestion.id}/export", headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "PRD_MISSING"


@pytest.mark.asyncio
async def test_create_idea_once(async_client: AsyncClient, db_session, test_user, test_admin, admin_headers):
    suggestion = await create_suggestion(
        db_session, test_user, status=SuggestionStatus.APPROVED, prd=PRD_TEXT
    )

    first = await async_client.post(f"{BASE_URL}/{suggestion.id}/idea", headers=admin_headers)
    second = await async_client.post(f"{BASE_URL}/{suggestion.id}/idea", headers=admin_headers)

    assert first.status_code == 201
    assert first.json()["suggestionId"] == str(suggestion.id)
    assert first.json()["createdBy"] == str(test_admin.id)
    assert second.status_code == 409
    assert second.json()["detail"]["error"] == "IDEA_EXISTS"


@pytest.mark.asyncio
async def test_export_non_latin_title(async_client: AsyncClient, db_session, test_user, admin_headers):
    suggestion = await create_suggestion(
        db_session,
        test_user,
        title="Łódź lager routing",
        status=SuggestionStatus.APPROVED,
        prd=PRD_TEXT,
    )

    response = await async_client.get(f"{BASE_URL}/{suggestion.id}/export?format=md", headers=admin_headers)

    assert response.status_code == 200
    assert 'filename="odz-lager-routing-prd.md"' in response.headers["content-disposition"]
    assert "Łódź lager routing" in response.text
