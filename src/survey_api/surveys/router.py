"""
Survey API router.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.auth.dependencies import CurrentUserDep
from survey_api.shared.database import get_db_session
from survey_api.shared.logging import get_logger
from survey_api.shared.pagination import PaginationMeta
from survey_api.surveys.schemas import (
    SurveyCreate,
    SurveyDetail,
    SurveyListResponse,
    SurveyUpdate,
)
from survey_api.surveys.service import SurveyService

logger = get_logger(__name__)

router = APIRouter(prefix="/api/surveys", tags=["surveys"])


def get_survey_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> SurveyService:
    """Dependency for survey service."""
    return SurveyService(session)


SurveyServiceDep = Annotated[SurveyService, Depends(get_survey_service)]


@router.post(
    "",
    response_model=SurveyDetail,
    status_code=status.HTTP_201_CREATED,
)
async def create_survey(
    data: SurveyCreate,
    current_user: CurrentUserDep,
    service: SurveyServiceDep,
) -> SurveyDetail:
    """Create a survey with its questions in one step."""
    logger.info(
        "Creating survey",
        extra={"user_id": current_user.id, "question_count": len(data.questions)},
    )
    return await service.create_survey_with_questions(
        owner_id=current_user.id,
        title=data.title,
        description=data.description,
        questions=data.questions,
    )


@router.get("", response_model=SurveyListResponse)
async def list_my_surveys(
    current_user: CurrentUserDep,
    service: SurveyServiceDep,
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    page_size: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 20,
) -> SurveyListResponse:
    """Paginated list of the caller's surveys."""
    items, total = await service.list_surveys(current_user.id, page=page, page_size=page_size)
    return SurveyListResponse(
        items=items,
        meta=PaginationMeta.build(total=total, page=page, page_size=page_size),
    )


@router.get("/{survey_id}", response_model=SurveyDetail)
async def get_survey(
    survey_id: int,
    current_user: CurrentUserDep,
    service: SurveyServiceDep,
) -> SurveyDetail:
    """Survey with its questions in order."""
    return await service.get_survey_with_questions(survey_id)


@router.patch("/{survey_id}", response_model=SurveyDetail)
async def update_survey(
    survey_id: int,
    data: SurveyUpdate,
    current_user: CurrentUserDep,
    service: SurveyServiceDep,
) -> SurveyDetail:
    """Rename, describe, close or reopen a survey."""
    return await service.update_survey(survey_id, current_user.id, data)


@router.delete("/{survey_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_survey(
    survey_id: int,
    current_user: CurrentUserDep,
    service: SurveyServiceDep,
) -> None:
    """Delete a survey and everything collected for it."""
    await service.delete_survey(survey_id, current_user.id)
