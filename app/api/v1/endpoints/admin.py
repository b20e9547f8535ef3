"""Admin review API"""

import logging
from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import ai_unavailable_error, handle_service_error, require_admin
from app.core.database import get_db
from app.infrastructure.agent.llm_client import AICollaboratorError
from app.models.user import User
from app.schemas import ErrorResponse
from app.schemas.suggestion import (
    DecisionRequest,
    DecisionResponse,
    EditSuggestionRequest,
    IdeaResponse,
    StatusFilter,
    SuggestionListResponse,
    SuggestionResponse,
)
from app.services.review_service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/suggestions", tags=["Admin"])

ADMIN_ERRORS = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


def get_review_service(db: Annotated[AsyncSession, Depends(get_db)]) -> ReviewService:
    """ReviewService dependency"""
    return ReviewService(db)


@router.get(
    "",
    response_model=SuggestionListResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def list_suggestions(
    admin: Annotated[User, Depends(require_admin)],
    service: Annotated[ReviewService, Depends(get_review_service)],
    status_filter: Annotated[StatusFilter, Query(alias="status")] = "all",
) -> SuggestionListResponse:
    """Non-archived suggestions split into pending and reviewed"""
    return await service.list_suggestions(status_filter)


@router.get(
    "/{suggestion_id}",
    response_model=SuggestionResponse,
    responses=ADMIN_ERRORS,
)
async def get_suggestion(
    suggestion_id: UUID,
    admin: Annotated[User, Depends(require_admin)],
    service: Annotated[ReviewService, Depends(get_review_service)],
) -> SuggestionResponse:
    """Any suggestion by id, archived included"""
    try:
        return await service.get_suggestion(suggestion_id)
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "/{suggestion_id}/decision",
    response_model=DecisionResponse,
    responses={**ADMIN_ERRORS, 409: {"model": ErrorResponse}},
)
async def decide(
    suggestion_id: UUID,
    data: DecisionRequest,
    admin: Annotated[User, Depends(require_admin)],
    service: Annotated[ReviewService, Depends(get_review_service)],
) -> DecisionResponse:
    """Approve, reject or request more information"""
    try:
        return await service.decide(suggestion_id, data, admin.id)
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "/{suggestion_id}/archive",
    response_model=SuggestionResponse,
    responses={**ADMIN_ERRORS, 409: {"model": ErrorResponse}},
)
async def archive(
    suggestion_id: UUID,
    admin: Annotated[User, Depends(require_admin)],
    service: Annotated[ReviewService, Depends(get_review_service)],
) -> SuggestionResponse:
    """Archive a reviewed suggestion (one-way)"""
    try:
        return await service.archive(suggestion_id)
    except ValueError as e:
        handle_service_error(e)


@router.patch(
    "/{suggestion_id}",
    response_model=SuggestionResponse,
    responses={**ADMIN_ERRORS, 422: {"model": ErrorResponse}},
)
async def edit(
    suggestion_id: UUID,
    data: EditSuggestionRequest,
    admin: Annotated[User, Depends(require_admin)],
    service: Annotated[ReviewService, Depends(get_review_service)],
) -> SuggestionResponse:
    """Correct title, description and department"""
    try:
        return await service.edit(suggestion_id, data)
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "/{suggestion_id}/prd",
    response_model=SuggestionResponse,
    responses={**ADMIN_ERRORS, 409: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def regenerate_prd(
    suggestion_id: UUID,
    admin: Annotated[User, Depends(require_admin)],
    service: Annotated[ReviewService, Depends(get_review_service)],
) -> SuggestionResponse:
    """Generate the PRD now (manual retry after a failed run)"""
    try:
        return await service.generate_prd(suggestion_id)
    except ValueError as e:
        handle_service_error(e)
    except AICollaboratorError:
        raise ai_unavailable_error("PRD generation failed, please retry")


@router.get(
    "/{suggestion_id}/export",
    responses={**ADMIN_ERRORS, 409: {"model": ErrorResponse}},
)
async def export(
    suggestion_id: UUID,
    admin: Annotated[User, Depends(require_admin)],
    service: Annotated[ReviewService, Depends(get_review_service)],
    export_format: Annotated[Literal["md", "pdf"], Query(alias="format")] = "md",
) -> Response:
    """Download the PRD as Markdown or PDF"""
    try:
        content, media_type, filename = await service.export(suggestion_id, export_format)
    except ValueError as e:
        handle_service_error(e)

    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/{suggestion_id}/idea",
    response_model=IdeaResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**ADMIN_ERRORS, 409: {"model": ErrorResponse}},
)
async def create_idea(
    suggestion_id: UUID,
    admin: Annotated[User, Depends(require_admin)],
    service: Annotated[ReviewService, Depends(get_review_service)],
) -> IdeaResponse:
    """Promote an approved suggestion to an idea"""
    try:
        return await service.create_idea(suggestion_id, admin.id)
    except ValueError as e:
        handle_service_error(e)
