"""
Refresh token repository.

Every write only flushes; ``RefreshTokenService`` owns the transaction.
"""

from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.auth.models import RefreshToken


class RefreshTokenRepositoryProtocol(Protocol):
    """Protocol for refresh token repository operations."""

    async def insert(self, token: RefreshToken) -> RefreshToken: ...
    async def get_by_hash(self, token_hash: str) -> RefreshToken | None: ...
    async def delete_by_hash(self, token_hash: str) -> bool: ...
    async def delete_for_user(self, user_id: int) -> int: ...


class RefreshTokenRepository:
    """Repository for refresh token rows."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert(self, token: RefreshToken) -> RefreshToken:
        self._session.add(token)
        await self._session.flush()
        return token

    async def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        result = await self._session.execute(
            select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        )
        return result.scalar_one_or_none()

    async def delete_by_hash(self, token_hash: str) -> bool:
        """Delete one token. False when no row matched, e.g. it was already rotated."""
        result = await self._session.execute(
            delete(RefreshToken).where(RefreshToken.token_hash == token_hash)
        )
        return result.rowcount > 0

    async def delete_for_user(self, user_id: int) -> int:
        """Delete every token of a user; returns how many were removed."""
        result = await self._session.execute(
            delete(RefreshToken).where(RefreshToken.user_id == user_id)
        )
        return result.rowcount
