"""
Memo API router.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.assist.dependencies import AssistClientDep
from survey_api.auth.dependencies import CurrentUserDep
from survey_api.memos.schemas import MemoCreate, MemoUpdate, MemoView
from survey_api.memos.service import MemoService
from survey_api.shared.database import get_db_session

router = APIRouter(prefix="/api/memos", tags=["memos"])


def get_memo_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    client: AssistClientDep,
) -> MemoService:
    """Dependency for memo service."""
    return MemoService(session, embedder=client)


MemoServiceDep = Annotated[MemoService, Depends(get_memo_service)]


@router.post("", response_model=MemoView, status_code=status.HTTP_201_CREATED)
async def create_memo(
    data: MemoCreate,
    current_user: CurrentUserDep,
    service: MemoServiceDep,
) -> MemoView:
    return await service.create_memo(current_user.id, data.content)


@router.get("", response_model=list[MemoView])
async def list_memos(current_user: CurrentUserDep, service: MemoServiceDep) -> list[MemoView]:
    """The caller's memos, pinned first."""
    return await service.list_memos(current_user.id)


@router.get("/{memo_id}", response_model=MemoView)
async def get_memo(
    memo_id: int,
    current_user: CurrentUserDep,
    service: MemoServiceDep,
) -> MemoView:
    return await service.get_memo(current_user.id, memo_id)


@router.put("/{memo_id}", response_model=MemoView)
async def update_memo(
    memo_id: int,
    data: MemoUpdate,
    current_user: CurrentUserDep,
    service: MemoServiceDep,
) -> MemoView:
    """Replace a memo's content."""
    return await service.update_memo(current_user.id, memo_id, data.content)


@router.delete("/{memo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_memo(
    memo_id: int,
    current_user: CurrentUserDep,
    service: MemoServiceDep,
) -> None:
    await service.delete_memo(current_user.id, memo_id)


@router.patch("/{memo_id}/pin", response_model=MemoView)
async def toggle_pin(
    memo_id: int,
    current_user: CurrentUserDep,
    service: MemoServiceDep,
) -> MemoView:
    """Pin or unpin a memo."""
    return await service.toggle_pin(current_user.id, memo_id)
