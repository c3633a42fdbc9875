"""JWT access tokens carrying the integer user id."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError as PyJWTInvalidTokenError

from survey_api.config import Settings, get_settings
from survey_api.shared.exceptions import InvalidTokenError, TokenExpiredError
from survey_api.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    """Validated access token claims."""

    user_id: int
    username: str
    role: str
    expires_at: datetime


class JWTHandler:
    """Handler for creating and validating access tokens."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    def create_access_token(
        self,
        user_id: int,
        username: str,
        role: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a new signed access token."""
        now = datetime.now(timezone.utc)
        expires = now + (
            expires_delta
            if expires_delta is not None
            else timedelta(minutes=self._settings.jwt_access_token_expire_minutes)
        )

        payload: dict[str, Any] = {
            "sub": str(user_id),
            "username": username,
            "role": role,
            "type": "access",
            "iat": now,
            "exp": expires,
        }

        return jwt.encode(
            payload,
            self._settings.jwt_secret_key,
            algorithm=self._settings.jwt_algorithm,
        )

    def decode_access_token(self, token: str) -> TokenClaims:
        """Decode and validate an access token.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is malformed, badly signed or not an access token.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.jwt_secret_key,
                algorithms=[self._settings.jwt_algorithm],
            )
        except ExpiredSignatureError as e:
            logger.info("Token expired")
            raise TokenExpiredError() from e
        except PyJWTInvalidTokenError as e:
            logger.warning("Invalid token", extra={"error": str(e)})
            raise InvalidTokenError(details={"error": str(e)}) from e

        if payload.get("type") != "access":
            raise InvalidTokenError(
                message="Invalid token type",
                details={"expected": "access", "got": payload.get("type")},
            )

        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTokenError(message="Token missing subject") from e

        return TokenClaims(
            user_id=user_id,
            username=str(payload.get("username", "")),
            role=str(payload.get("role", "user")),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def get_token_expiry_seconds(self) -> int:
        """Access token lifetime in seconds."""
        return self._settings.jwt_access_token_expire_minutes * 60
