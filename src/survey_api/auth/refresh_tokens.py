"""
Refresh tokens: opaque random strings exchanged for new access tokens.

Each token is single use. Refreshing deletes the presented token and stores
its successor in the same transaction, so a replayed token is rejected.
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.auth.models import RefreshToken
from survey_api.auth.repository import RefreshTokenRepository, RefreshTokenRepositoryProtocol
from survey_api.config import Settings, get_settings
from survey_api.shared.database import storage_errors, transaction
from survey_api.shared.exceptions import InvalidTokenError, TokenExpiredError
from survey_api.shared.logging import get_logger

logger = get_logger(__name__)

TOKEN_BYTES = 32


def hash_refresh_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class RefreshTokenService:
    """Issues, rotates and revokes refresh tokens."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        repository: RefreshTokenRepositoryProtocol | None = None,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._repository = repository or RefreshTokenRepository(session)

    @property
    def max_age_seconds(self) -> int:
        return self._settings.jwt_refresh_token_expire_days * 24 * 60 * 60

    async def issue(self, user_id: int) -> str:
        """Store a new refresh token for ``user_id`` and return its plain value."""
        token = secrets.token_urlsafe(TOKEN_BYTES)
        with storage_errors("Refresh token issue", user_id=user_id):
            async with transaction(self._session):
                await self._repository.insert(self._new_row(user_id, token))

        logger.info("Refresh token issued", extra={"user_id": user_id})
        return token

    async def rotate(self, token: str) -> tuple[int, str]:
        """Consume ``token`` and issue its successor.

        Returns:
            The owning user id and the new refresh token.

        Raises:
            InvalidTokenError: Unknown, revoked or already rotated token.
            TokenExpiredError: The token is past its expiry; it is deleted.
        """
        token_hash = hash_refresh_token(token)
        with storage_errors("Refresh token lookup"):
            stored = await self._repository.get_by_hash(token_hash)
        if stored is None:
            raise InvalidTokenError(message="Refresh token not recognised")

        user_id = stored.user_id
        if _as_utc(stored.expires_at) <= datetime.now(timezone.utc):
            await self._delete(token_hash)
            logger.info("Expired refresh token presented", extra={"user_id": user_id})
            raise TokenExpiredError(message="Refresh token has expired")

        successor = secrets.token_urlsafe(TOKEN_BYTES)
        with storage_errors("Refresh token rotation", user_id=user_id):
            async with transaction(self._session):
                if not await self._repository.delete_by_hash(token_hash):
                    # A concurrent refresh consumed it first.
                    raise InvalidTokenError(message="Refresh token not recognised")
                await self._repository.insert(self._new_row(user_id, successor))

        logger.info("Refresh token rotated", extra={"user_id": user_id})
        return user_id, successor

    async def revoke(self, token: str) -> bool:
        """Delete one refresh token. False when it was not stored."""
        revoked = await self._delete(hash_refresh_token(token))
        logger.info("Refresh token revoked", extra={"revoked": revoked})
        return revoked

    async def revoke_all(self, user_id: int) -> int:
        """Delete every refresh token of ``user_id`` (log out everywhere)."""
        with storage_errors("Refresh token revocation", user_id=user_id):
            async with transaction(self._session):
                count = await self._repository.delete_for_user(user_id)

        logger.info("All refresh tokens revoked", extra={"user_id": user_id, "count": count})
        return count

    async def _delete(self, token_hash: str) -> bool:
        with storage_errors("Refresh token delete"):
            async with transaction(self._session):
                return await self._repository.delete_by_hash(token_hash)

    def _new_row(self, user_id: int, token: str) -> RefreshToken:
        return RefreshToken(
            user_id=user_id,
            token_hash=hash_refresh_token(token),
            expires_at=datetime.now(timezone.utc)
            + timedelta(days=self._settings.jwt_refresh_token_expire_days),
        )
