"""
User service: registration, credential verification, session renewal and
profile lookup.
"""

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from survey_api.auth.jwt import JWTHandler
from survey_api.auth.passwords import hash_password, verify_password
from survey_api.auth.refresh_tokens import RefreshTokenService
from survey_api.shared.exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    StorageError,
)
from survey_api.shared.logging import get_logger
from survey_api.users.models import User, UserRole
from survey_api.users.repository import UserRepositoryProtocol
from survey_api.users.schemas import TokenResponse, UserCreate, UserResponse, to_user_response

logger = get_logger(__name__)

# Same message for unknown email and wrong password.
_BAD_CREDENTIALS = "Invalid email or password"


class UserService:
    """Service for account operations."""

    def __init__(
        self,
        repository: UserRepositoryProtocol,
        jwt_handler: JWTHandler,
        refresh_tokens: RefreshTokenService,
    ) -> None:
        self._repository = repository
        self._jwt_handler = jwt_handler
        self._refresh_tokens = refresh_tokens

    async def register(self, data: UserCreate) -> UserResponse:
        """Create an account.

        Raises:
            ConflictError: If the username or email is already taken.
        """
        if await self._repository.get_by_username(data.username) is not None:
            raise ConflictError(
                message="Username already taken",
                details={"field": "username"},
            )
        if await self._repository.get_by_email(data.email) is not None:
            raise ConflictError(
                message="Email already registered",
                details={"field": "email"},
            )

        user = User(
            username=data.username,
            email=data.email,
            password_hash=hash_password(data.password),
            role=UserRole.USER,
        )
        try:
            user = await self._repository.create(user)
        except IntegrityError as e:
            # Lost a race against a concurrent registration.
            logger.info("Registration hit unique constraint", extra={"username": data.username})
            raise ConflictError(message="Username or email already registered") from e
        except SQLAlchemyError as e:
            logger.exception("Failed to create user")
            raise StorageError() from e

        logger.info("User registered", extra={"user_id": user.id})
        return to_user_response(user)

    async def authenticate(self, email: str, password: str) -> TokenResponse:
        """Verify credentials and issue an access token plus a refresh token.

        Raises:
            AuthenticationError: If the credentials do not match an account.
        """
        user = await self._repository.get_by_email(email.lower())
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Login rejected")
            raise AuthenticationError(message=_BAD_CREDENTIALS, code="INVALID_CREDENTIALS")

        refresh_token = await self._refresh_tokens.issue(user.id)
        logger.info("User authenticated", extra={"user_id": user.id})
        return self._token_response(user, refresh_token)

    async def refresh(self, refresh_token: str) -> TokenResponse:
        """Trade a refresh token for a new access token and a new refresh token.

        The presented token is consumed.

        Raises:
            InvalidTokenError: Unknown or already used token, or its account is gone.
            TokenExpiredError: The refresh token has expired.
        """
        user_id, successor = await self._refresh_tokens.rotate(refresh_token)
        user = await self._repository.get_by_id(user_id)
        if user is None:
            raise InvalidTokenError(message="Account no longer exists")
        return self._token_response(user, successor)

    async def logout(self, refresh_token: str) -> None:
        """Revoke one refresh token. Unknown tokens are ignored."""
        await self._refresh_tokens.revoke(refresh_token)

    async def logout_all(self, user_id: int) -> int:
        """Revoke every refresh token of an account."""
        return await self._refresh_tokens.revoke_all(user_id)

    async def get_profile(self, user_id: int) -> UserResponse:
        """Get an account's public view.

        Raises:
            NotFoundError: If the account does not exist.
        """
        user = await self._repository.get_by_id(user_id)
        if user is None:
            raise NotFoundError(
                message="User not found",
                details={"user_id": user_id},
            )
        return to_user_response(user)

    def _token_response(self, user: User, refresh_token: str) -> TokenResponse:
        token = self._jwt_handler.create_access_token(
            user_id=user.id,
            username=user.username,
            role=UserRole(user.role).value,
        )
        return TokenResponse(
            access_token=token,
            refresh_token=refresh_token,
            expires_in=self._jwt_handler.get_token_expiry_seconds(),
            user=to_user_response(user),
        )
