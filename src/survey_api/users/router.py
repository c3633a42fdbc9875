"""
User, login and session API routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.auth.dependencies import CurrentUserDep, get_app_settings, get_jwt_handler
from survey_api.auth.jwt import JWTHandler
from survey_api.auth.refresh_tokens import RefreshTokenService
from survey_api.config import Settings
from survey_api.shared.database import get_db_session
from survey_api.users.repository import UserRepository
from survey_api.users.schemas import (
    LoginRequest,
    RefreshRequest,
    TokenResponse,
    UserCreate,
    UserResponse,
)
from survey_api.users.service import UserService

router = APIRouter(tags=["users"])


def get_user_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    jwt_handler: Annotated[JWTHandler, Depends(get_jwt_handler)],
) -> UserService:
    """Dependency for user service."""
    return UserService(
        UserRepository(session),
        jwt_handler,
        RefreshTokenService(session, settings),
    )


UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.post(
    "/api/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_user(data: UserCreate, service: UserServiceDep) -> UserResponse:
    """Register a new account."""
    return await service.register(data)


@router.post("/api/auth/login", response_model=TokenResponse)
async def login(data: LoginRequest, service: UserServiceDep) -> TokenResponse:
    """Exchange credentials for an access token and a refresh token."""
    return await service.authenticate(data.email, data.password)


@router.post("/api/auth/refresh", response_model=TokenResponse)
async def refresh(data: RefreshRequest, service: UserServiceDep) -> TokenResponse:
    """Exchange a refresh token for a fresh token pair. The old refresh token stops working."""
    return await service.refresh(data.refresh_token)


@router.post("/api/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(data: RefreshRequest, service: UserServiceDep) -> None:
    """Revoke one refresh token."""
    await service.logout(data.refresh_token)


@router.post("/api/auth/logout-all", status_code=status.HTTP_204_NO_CONTENT)
async def logout_all(current_user: CurrentUserDep, service: UserServiceDep) -> None:
    """Revoke every refresh token of the caller."""
    await service.logout_all(current_user.id)


@router.get("/api/users/me", response_model=UserResponse)
async def get_me(current_user: CurrentUserDep, service: UserServiceDep) -> UserResponse:
    """Profile of the authenticated caller."""
    return await service.get_profile(current_user.id)
