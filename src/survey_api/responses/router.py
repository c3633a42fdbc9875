"""
Response submission and retrieval API routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.auth.dependencies import CurrentUserDep
from survey_api.responses.schemas import (
    ResponseDetail,
    ResponseListResponse,
    ResponseSubmit,
    SubmissionReceipt,
)
from survey_api.responses.service import ResponseService
from survey_api.shared.database import get_db_session
from survey_api.shared.logging import get_logger
from survey_api.shared.pagination import PaginationMeta

logger = get_logger(__name__)

router = APIRouter(tags=["responses"])


def get_response_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> ResponseService:
    """Dependency for response service."""
    return ResponseService(session)


ResponseServiceDep = Annotated[ResponseService, Depends(get_response_service)]


@router.post(
    "/api/surveys/{survey_id}/responses",
    response_model=SubmissionReceipt,
    status_code=status.HTTP_201_CREATED,
)
async def submit_response(
    survey_id: int,
    data: ResponseSubmit,
    current_user: CurrentUserDep,
    service: ResponseServiceDep,
) -> SubmissionReceipt:
    """Submit the caller's answers to a survey."""
    logger.info(
        "Submitting response",
        extra={
            "user_id": current_user.id,
            "survey_id": survey_id,
            "answer_count": len(data.answers),
        },
    )
    return await service.submit_survey_response(
        user_id=current_user.id,
        survey_id=survey_id,
        answers=data.answers,
    )


@router.get("/api/surveys/{survey_id}/responses", response_model=ResponseListResponse)
async def list_survey_responses(
    survey_id: int,
    current_user: CurrentUserDep,
    service: ResponseServiceDep,
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    page_size: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 20,
) -> ResponseListResponse:
    """Paginated responses collected for a survey the caller owns."""
    items, total = await service.list_responses(
        survey_id,
        current_user.id,
        page=page,
        page_size=page_size,
    )
    return ResponseListResponse(
        items=items,
        meta=PaginationMeta.build(total=total, page=page, page_size=page_size),
    )


@router.get("/api/responses/{response_id}", response_model=ResponseDetail)
async def get_response(
    response_id: int,
    current_user: CurrentUserDep,
    service: ResponseServiceDep,
) -> ResponseDetail:
    """One response with its answers."""
    return await service.get_response(response_id, current_user.id)
