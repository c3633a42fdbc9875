"""Tests for user service."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from survey_api.auth.jwt import JWTHandler
from survey_api.auth.passwords import hash_password
from survey_api.auth.refresh_tokens import RefreshTokenService
from survey_api.shared.exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    StorageError,
    TokenExpiredError,
)
from survey_api.users.models import User, UserRole
from survey_api.users.repository import UserRepository
from survey_api.users.schemas import UserCreate
from survey_api.users.service import UserService


def _user(**kwargs) -> User:
    fields = {
        "id": 1,
        "username": "ada",
        "email": "ada@example.com",
        "password_hash": hash_password("s3cret-pass", rounds=1000),
        "role": UserRole.USER,
        "created_at": datetime.now(timezone.utc),
    }
    fields.update(kwargs)
    return User(**fields)


@pytest.fixture
def mock_repository() -> AsyncMock:
    repository = AsyncMock(spec=UserRepository)
    repository.get_by_username.return_value = None
    repository.get_by_email.return_value = None
    return repository


@pytest.fixture
def mock_refresh_tokens() -> AsyncMock:
    refresh_tokens = AsyncMock(spec=RefreshTokenService)
    refresh_tokens.issue.return_value = "refresh-1"
    return refresh_tokens


@pytest.fixture
def service(mock_repository, mock_refresh_tokens, settings) -> UserService:
    return UserService(mock_repository, JWTHandler(settings), mock_refresh_tokens)


class TestRegister:
    """Tests for UserService.register."""

    @pytest.mark.asyncio
    async def test_register_hashes_password(self, service, mock_repository):
        """Test the stored hash is not the plain password."""
        mock_repository.create.side_effect = lambda user: _user(
            username=user.username, email=user.email, password_hash=user.password_hash
        )

        result = await service.register(
            UserCreate(username="ada", email="Ada@Example.com", password="s3cret-pass")
        )

        stored = mock_repository.create.call_args.args[0]
        assert stored.password_hash != "s3cret-pass"
        assert stored.email == "ada@example.com"
        assert result.username == "ada"

    @pytest.mark.asyncio
    async def test_username_taken(self, service, mock_repository):
        """Test an existing username conflicts."""
        mock_repository.get_by_username.return_value = _user()

        with pytest.raises(ConflictError) as exc_info:
            await service.register(UserCreate(username="ada", email="new@example.com", password="s3cret-pass"))

        assert exc_info.value.details == {"field": "username"}
        mock_repository.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_email_taken(self, service, mock_repository):
        """Test an existing email conflicts."""
        mock_repository.get_by_email.return_value = _user()

        with pytest.raises(ConflictError) as exc_info:
            await service.register(UserCreate(username="other", email="ada@example.com", password="s3cret-pass"))

        assert exc_info.value.details == {"field": "email"}

    @pytest.mark.asyncio
    async def test_integrity_error_is_conflict(self, service, mock_repository):
        """Test a unique violation from a concurrent registration is a conflict."""
        mock_repository.create.side_effect = IntegrityError("INSERT", {}, Exception("UNIQUE"))

        with pytest.raises(ConflictError):
            await service.register(UserCreate(username="ada", email="ada@example.com", password="s3cret-pass"))

    @pytest.mark.asyncio
    async def test_other_storage_error(self, service, mock_repository):
        """Test any other storage failure is a generic storage error."""
        mock_repository.create.side_effect = OperationalError("INSERT", {}, Exception("db down"))

        with pytest.raises(StorageError):
            await service.register(UserCreate(username="ada", email="ada@example.com", password="s3cret-pass"))


class TestAuthenticate:
    """Tests for UserService.authenticate."""

    @pytest.mark.asyncio
    async def test_valid_credentials_issue_token(self, service, mock_repository, mock_refresh_tokens, settings):
        """Test a correct password yields a decodable token and a refresh token."""
        mock_repository.get_by_email.return_value = _user(id=12)

        result = await service.authenticate("ada@example.com", "s3cret-pass")

        claims = JWTHandler(settings).decode_access_token(result.access_token)
        assert claims.user_id == 12
        assert result.token_type == "bearer"
        assert result.expires_in == 3600
        assert result.user.id == 12
        assert result.refresh_token == "refresh-1"
        mock_refresh_tokens.issue.assert_awaited_once_with(12)

    @pytest.mark.asyncio
    async def test_wrong_password(self, service, mock_repository, mock_refresh_tokens):
        """Test a wrong password is rejected with the generic message."""
        mock_repository.get_by_email.return_value = _user()

        with pytest.raises(AuthenticationError) as exc_info:
            await service.authenticate("ada@example.com", "nope-nope")

        assert exc_info.value.code == "INVALID_CREDENTIALS"
        assert exc_info.value.message == "Invalid email or password"
        mock_refresh_tokens.issue.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_email_same_message(self, service):
        """Test an unknown email is indistinguishable from a wrong password."""
        with pytest.raises(AuthenticationError) as exc_info:
            await service.authenticate("ghost@example.com", "whatever1")

        assert exc_info.value.message == "Invalid email or password"


class TestSessions:
    """Tests for refresh and logout."""

    @pytest.mark.asyncio
    async def test_refresh_returns_new_pair(self, service, mock_repository, mock_refresh_tokens, settings):
        """Test a rotated refresh token comes back with a fresh access token."""
        mock_refresh_tokens.rotate.return_value = (7, "refresh-2")
        mock_repository.get_by_id.return_value = _user(id=7)

        result = await service.refresh("refresh-1")

        mock_refresh_tokens.rotate.assert_awaited_once_with("refresh-1")
        assert result.refresh_token == "refresh-2"
        assert JWTHandler(settings).decode_access_token(result.access_token).user_id == 7

    @pytest.mark.asyncio
    async def test_refresh_for_deleted_account(self, service, mock_repository, mock_refresh_tokens):
        """Test a token whose account is gone is rejected."""
        mock_refresh_tokens.rotate.return_value = (7, "refresh-2")
        mock_repository.get_by_id.return_value = None

        with pytest.raises(InvalidTokenError):
            await service.refresh("refresh-1")

    @pytest.mark.asyncio
    async def test_refresh_expired_propagates(self, service, mock_repository, mock_refresh_tokens):
        """Test an expired refresh token surfaces as TokenExpiredError."""
        mock_refresh_tokens.rotate.side_effect = TokenExpiredError("Refresh token has expired")

        with pytest.raises(TokenExpiredError):
            await service.refresh("refresh-1")

        mock_repository.get_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_logout_revokes_one(self, service, mock_refresh_tokens):
        await service.logout("refresh-1")

        mock_refresh_tokens.revoke.assert_awaited_once_with("refresh-1")

    @pytest.mark.asyncio
    async def test_logout_all(self, service, mock_refresh_tokens):
        mock_refresh_tokens.revoke_all.return_value = 3

        assert await service.logout_all(7) == 3
        mock_refresh_tokens.revoke_all.assert_awaited_once_with(7)


class TestGetProfile:
    """Tests for UserService.get_profile."""

    @pytest.mark.asyncio
    async def test_found(self, service, mock_repository):
        """Test a known user maps to the public view."""
        mock_repository.get_by_id.return_value = _user(id=3)

        profile = await service.get_profile(3)

        assert profile.id == 3

    @pytest.mark.asyncio
    async def test_missing(self, service, mock_repository):
        """Test an unknown user raises NotFoundError."""
        mock_repository.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await service.get_profile(3)
