"""
FastAPI dependencies resolving the authenticated caller.

The rest of the service trusts the integer user id produced here without
re-verifying it.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict, Field

from survey_api.auth.jwt import JWTHandler
from survey_api.config import Settings
from survey_api.shared.exceptions import AuthenticationError
from survey_api.shared.logging import get_logger

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Authenticated caller."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    role: str = Field(..., description="User role")


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was built with."""
    return request.app.state.settings


def get_jwt_handler(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> JWTHandler:
    return JWTHandler(settings)


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    jwt_handler: Annotated[JWTHandler, Depends(get_jwt_handler)],
) -> CurrentUser:
    """Extract and validate the current user from the bearer token."""
    if credentials is None:
        logger.warning(
            "Missing authentication credentials",
            extra={
                "endpoint": str(request.url.path),
                "method": request.method,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "code": "MISSING_CREDENTIALS",
                "message": "Authentication credentials required",
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = jwt_handler.decode_access_token(credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": e.code, "message": e.message},
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return CurrentUser(id=claims.user_id, username=claims.username, role=claims.role)


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
