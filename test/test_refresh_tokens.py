"""Tests for refresh token issue, rotation and revocation."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from survey_api.auth.models import RefreshToken
from survey_api.auth.refresh_tokens import RefreshTokenService, hash_refresh_token
from survey_api.auth.repository import RefreshTokenRepositoryProtocol
from survey_api.shared.exceptions import InvalidTokenError, StorageError, TokenExpiredError


@pytest.fixture
def service(session, settings) -> RefreshTokenService:
    return RefreshTokenService(session, settings)


async def _stored_hashes(database, user_id: int) -> set[str]:
    async with database.session_factory() as fresh:
        result = await fresh.execute(
            select(RefreshToken.token_hash).where(RefreshToken.user_id == user_id)
        )
        return set(result.scalars().all())


class TestHashRefreshToken:
    """Tests for hash_refresh_token."""

    def test_sha256_hex_digest(self):
        digest = hash_refresh_token("abc")

        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_distinct_tokens_distinct_digests(self):
        assert hash_refresh_token("a") != hash_refresh_token("b")


class TestIssue:
    """Tests for RefreshTokenService.issue."""

    @pytest.mark.asyncio
    async def test_stores_only_digest(self, service, make_user, database):
        """Test the plain token is returned and only its digest is committed."""
        user = await make_user()

        token = await service.issue(user.id)

        assert await _stored_hashes(database, user.id) == {hash_refresh_token(token)}

    @pytest.mark.asyncio
    async def test_expiry_follows_settings(self, service, make_user, database, settings):
        """Test the stored expiry is the configured number of days away."""
        user = await make_user()

        await service.issue(user.id)

        async with database.session_factory() as fresh:
            stored = (await fresh.execute(select(RefreshToken))).scalar_one()
        expires_at = stored.expires_at.replace(tzinfo=timezone.utc)
        expected = datetime.now(timezone.utc) + timedelta(days=settings.jwt_refresh_token_expire_days)
        assert abs((expires_at - expected).total_seconds()) < 60
        assert service.max_age_seconds == 7 * 24 * 60 * 60

    @pytest.mark.asyncio
    async def test_tokens_are_unique(self, service, make_user, database):
        user = await make_user()

        first = await service.issue(user.id)
        second = await service.issue(user.id)

        assert first != second
        assert len(await _stored_hashes(database, user.id)) == 2


class TestRotate:
    """Tests for RefreshTokenService.rotate."""

    @pytest.mark.asyncio
    async def test_replaces_token(self, service, make_user, database):
        """Test rotation consumes the old token and stores its successor."""
        user = await make_user()
        token = await service.issue(user.id)

        user_id, successor = await service.rotate(token)

        assert user_id == user.id
        assert successor != token
        assert await _stored_hashes(database, user.id) == {hash_refresh_token(successor)}

    @pytest.mark.asyncio
    async def test_replayed_token_rejected(self, service, make_user):
        """Test a token can only be used once."""
        user = await make_user()
        token = await service.issue(user.id)
        await service.rotate(token)

        with pytest.raises(InvalidTokenError) as exc_info:
            await service.rotate(token)

        assert exc_info.value.code == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_unknown_token_rejected(self, service):
        with pytest.raises(InvalidTokenError):
            await service.rotate("never-issued")

    @pytest.mark.asyncio
    async def test_expired_token_deleted(self, service, make_user, database):
        """Test an expired token raises TokenExpiredError and is removed."""
        user = await make_user()
        async with database.session_factory() as s:
            s.add(
                RefreshToken(
                    user_id=user.id,
                    token_hash=hash_refresh_token("stale"),
                    expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
                )
            )
            await s.commit()

        with pytest.raises(TokenExpiredError) as exc_info:
            await service.rotate("stale")

        assert exc_info.value.code == "TOKEN_EXPIRED"
        assert await _stored_hashes(database, user.id) == set()

    @pytest.mark.asyncio
    async def test_lost_race_rejected(self, session, settings):
        """Test a token deleted between lookup and rotation is rejected without a new row."""
        repository = AsyncMock(spec=RefreshTokenRepositoryProtocol)
        repository.get_by_hash.return_value = RefreshToken(
            user_id=5,
            token_hash=hash_refresh_token("contested"),
            expires_at=datetime.now(timezone.utc) + timedelta(days=1),
        )
        repository.delete_by_hash.return_value = False
        service = RefreshTokenService(session, settings, repository=repository)

        with pytest.raises(InvalidTokenError):
            await service.rotate("contested")

        repository.insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_lookup_failure_is_storage_error(self, session, settings):
        repository = AsyncMock(spec=RefreshTokenRepositoryProtocol)
        repository.get_by_hash.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        service = RefreshTokenService(session, settings, repository=repository)

        with pytest.raises(StorageError):
            await service.rotate("anything")


class TestRevoke:
    """Tests for revoke and revoke_all."""

    @pytest.mark.asyncio
    async def test_revoke_one(self, service, make_user, database):
        """Test revoking one token leaves the user's other tokens alone."""
        user = await make_user()
        kept = await service.issue(user.id)
        dropped = await service.issue(user.id)

        assert await service.revoke(dropped) is True
        assert await service.revoke(dropped) is False
        assert await _stored_hashes(database, user.id) == {hash_refresh_token(kept)}

    @pytest.mark.asyncio
    async def test_revoke_all_scoped_to_user(self, service, make_user, database):
        """Test revoke_all only removes the given user's tokens."""
        user = await make_user()
        other = await make_user()
        await service.issue(user.id)
        await service.issue(user.id)
        other_token = await service.issue(other.id)

        assert await service.revoke_all(user.id) == 2
        assert await _stored_hashes(database, user.id) == set()
        assert await _stored_hashes(database, other.id) == {hash_refresh_token(other_token)}

    @pytest.mark.asyncio
    async def test_revoked_token_cannot_refresh(self, service, make_user):
        user = await make_user()
        token = await service.issue(user.id)
        await service.revoke_all(user.id)

        with pytest.raises(InvalidTokenError):
            await service.rotate(token)
