"""
Memo repository for database operations.

``insert`` only flushes so the caller's transaction decides; ``update`` and
``delete`` commit.
"""

from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.memos.models import Memo


class MemoRepositoryProtocol(Protocol):
    """Protocol for memo repository operations."""

    async def insert(self, memo: Memo) -> Memo: ...
    async def get_by_id(self, memo_id: int) -> Memo | None: ...
    async def list_by_user(self, user_id: int) -> list[Memo]: ...
    async def list_embedded(self, user_id: int) -> list[Memo]: ...
    async def update(self, memo: Memo) -> Memo: ...
    async def delete(self, memo_id: int) -> bool: ...


class MemoRepository:
    """Repository for memo rows."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert(self, memo: Memo) -> Memo:
        self._session.add(memo)
        await self._session.flush()
        return memo

    async def get_by_id(self, memo_id: int) -> Memo | None:
        result = await self._session.execute(select(Memo).where(Memo.id == memo_id))
        return result.scalar_one_or_none()

    async def list_by_user(self, user_id: int) -> list[Memo]:
        """A user's memos: pinned first, then most recently updated."""
        result = await self._session.execute(
            select(Memo)
            .where(Memo.user_id == user_id)
            .order_by(Memo.is_pinned.desc(), Memo.updated_at.desc(), Memo.id.desc())
        )
        return list(result.scalars().all())

    async def list_embedded(self, user_id: int) -> list[Memo]:
        """A user's memos that carry an embedding."""
        result = await self._session.execute(
            select(Memo)
            .where(Memo.user_id == user_id, Memo.embedding.is_not(None))
            .order_by(Memo.id)
        )
        return list(result.scalars().all())

    async def update(self, memo: Memo) -> Memo:
        """Commit pending attribute changes on an attached memo."""
        await self._session.commit()
        await self._session.refresh(memo)
        return memo

    async def delete(self, memo_id: int) -> bool:
        """Delete a memo. Returns False when it did not exist."""
        result = await self._session.execute(delete(Memo).where(Memo.id == memo_id))
        await self._session.commit()
        return result.rowcount > 0
