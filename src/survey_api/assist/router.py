"""
Assist API routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.assist.dependencies import AssistClientDep
from survey_api.assist.schemas import AssistRequest, AssistResponse
from survey_api.assist.service import AssistService
from survey_api.auth.dependencies import CurrentUserDep
from survey_api.memos.repository import MemoRepository
from survey_api.shared.database import get_db_session

router = APIRouter(prefix="/api/assist", tags=["assist"])


def get_assist_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    client: AssistClientDep,
) -> AssistService:
    """Dependency for assist service."""
    return AssistService(embedder=client, generator=client, memos=MemoRepository(session))


AssistServiceDep = Annotated[AssistService, Depends(get_assist_service)]


@router.post("", response_model=AssistResponse)
async def assist(
    data: AssistRequest,
    current_user: CurrentUserDep,
    service: AssistServiceDep,
) -> AssistResponse:
    """Suggestion for a prompt, grounded on the caller's own memos."""
    return await service.suggest(current_user.id, data.prompt, limit=data.limit)
