"""
Pytest configuration and shared fixtures.

Every test gets its own SQLite database file, so sessions opened by the code
under test and sessions opened by assertions see the same committed state.
"""

import itertools
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.assist.fake import FakeAssistClient
from survey_api.auth.jwt import JWTHandler
from survey_api.config import Settings
from survey_api.main import create_app
from survey_api.shared.database import DatabaseManager
from survey_api.surveys.models import Question, QuestionType, Survey
from survey_api.users.models import User, UserRole

TEST_PASSWORD_HASH = "pbkdf2_sha256$1$00$00"

_user_seq = itertools.count(1000)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        app_env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret_key="test-secret-key-for-unit-tests-only",
        jwt_algorithm="HS256",
        jwt_access_token_expire_minutes=60,
        assist_provider="fake",
        db_create_all=False,
    )


@pytest_asyncio.fixture
async def database(settings: Settings) -> AsyncIterator[DatabaseManager]:
    """Database manager with the schema created."""
    manager = DatabaseManager(settings=settings)
    await manager.create_all()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def session(database: DatabaseManager) -> AsyncIterator[AsyncSession]:
    """Session for the code under test."""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def count_rows(database: DatabaseManager) -> Callable[[type], Awaitable[int]]:
    """Count committed rows of a model through a fresh session."""

    async def _count(model: type) -> int:
        async with database.session_factory() as fresh:
            result = await fresh.execute(select(func.count()).select_from(model))
            return result.scalar_one()

    return _count


@pytest.fixture
def make_user(database: DatabaseManager) -> Callable[..., Awaitable[User]]:
    """Insert and commit a user; ``id`` may be forced."""

    async def _make(
        id: int | None = None,
        username: str | None = None,
        email: str | None = None,
    ) -> User:
        async with database.session_factory() as s:
            suffix = id if id is not None else next(_user_seq)
            user = User(
                id=id,
                username=username or f"user{suffix}",
                email=email or f"user{suffix}@example.com",
                password_hash=TEST_PASSWORD_HASH,
                role=UserRole.USER,
            )
            s.add(user)
            await s.commit()
            await s.refresh(user)
            return user

    return _make


@pytest.fixture
def make_survey(database: DatabaseManager) -> Callable[..., Awaitable[Survey]]:
    """Insert and commit a survey with questions given as ``(id, is_required)`` pairs."""

    async def _make(
        owner_id: int,
        questions: Sequence[tuple[int | None, bool]] = ((None, True),),
        id: int | None = None,
        is_active: bool = True,
        title: str = "Team survey",
    ) -> Survey:
        async with database.session_factory() as s:
            survey = Survey(id=id, owner_id=owner_id, title=title, is_active=is_active)
            s.add(survey)
            await s.flush()
            for position, (question_id, required) in enumerate(questions):
                s.add(
                    Question(
                        id=question_id,
                        survey_id=survey.id,
                        text=f"Question {position + 1}",
                        question_type=QuestionType.SHORT_TEXT,
                        is_required=required,
                        order_index=position,
                    )
                )
            await s.commit()
            await s.refresh(survey)
            return survey

    return _make


@pytest.fixture
def assist_client() -> FakeAssistClient:
    return FakeAssistClient()


@pytest.fixture
def app(settings: Settings, database: DatabaseManager, assist_client: FakeAssistClient):
    """Application wired to the per-test database."""
    return create_app(settings=settings, database=database, assist_client=assist_client)


@pytest_asyncio.fixture
async def client(app) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers(settings: Settings) -> Callable[[User], dict[str, Any]]:
    """Bearer header for a user."""
    handler = JWTHandler(settings)

    def _headers(user: User) -> dict[str, Any]:
        token = handler.create_access_token(
            user_id=user.id,
            username=user.username,
            role=UserRole(user.role).value,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
