"""
Survey repository for database operations.

``insert_*`` methods only flush: they run inside a caller-owned transaction
and become durable when the caller commits. ``update``/``delete`` commit
on their own.
"""

from typing import Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.shared.pagination import page_offset
from survey_api.surveys.models import Question, Survey


class SurveyRepositoryProtocol(Protocol):
    """Protocol for survey repository operations."""

    async def insert_survey(self, survey: Survey) -> Survey: ...
    async def insert_question(self, question: Question) -> Question: ...
    async def get_by_id(self, survey_id: int) -> Survey | None: ...
    async def get_questions(self, survey_id: int) -> list[Question]: ...
    async def find_with_questions(
        self, survey_id: int
    ) -> tuple[Survey, list[Question]] | None: ...
    async def list_by_owner(
        self, owner_id: int, page: int = 1, page_size: int = 20
    ) -> tuple[list[Survey], int]: ...
    async def update(self, survey: Survey) -> Survey: ...
    async def delete(self, survey_id: int) -> bool: ...


class SurveyRepository:
    """Repository for survey and question rows."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def insert_survey(self, survey: Survey) -> Survey:
        """Stage a survey row inside the open transaction; assigns its id."""
        self._session.add(survey)
        await self._session.flush()
        return survey

    async def insert_question(self, question: Question) -> Question:
        """Stage a question row inside the open transaction."""
        self._session.add(question)
        await self._session.flush()
        return question

    async def get_by_id(self, survey_id: int) -> Survey | None:
        result = await self._session.execute(select(Survey).where(Survey.id == survey_id))
        return result.scalar_one_or_none()

    async def get_questions(self, survey_id: int) -> list[Question]:
        """Questions of a survey ordered by ``order_index`` ascending."""
        result = await self._session.execute(
            select(Question)
            .where(Question.survey_id == survey_id)
            .order_by(Question.order_index.asc())
        )
        return list(result.scalars().all())

    async def find_with_questions(
        self,
        survey_id: int,
    ) -> tuple[Survey, list[Question]] | None:
        """Read a survey and its questions straight from the store.

        Rows already in the session's identity map are overwritten with the
        stored values, so server-side defaults are reflected.
        """
        result = await self._session.execute(
            select(Survey)
            .where(Survey.id == survey_id)
            .execution_options(populate_existing=True)
        )
        survey = result.scalar_one_or_none()
        if survey is None:
            return None

        questions = await self._session.execute(
            select(Question)
            .where(Question.survey_id == survey_id)
            .order_by(Question.order_index.asc())
            .execution_options(populate_existing=True)
        )
        return survey, list(questions.scalars().all())

    async def list_by_owner(
        self,
        owner_id: int,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Survey], int]:
        """Surveys of one owner, newest first, with total count."""
        base_query = select(Survey).where(Survey.owner_id == owner_id)

        count_stmt = select(func.count()).select_from(base_query.subquery())
        total = (await self._session.execute(count_stmt)).scalar() or 0

        stmt = (
            base_query
            .order_by(Survey.created_at.desc(), Survey.id.desc())
            .offset(page_offset(page, page_size))
            .limit(page_size)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all()), total

    async def update(self, survey: Survey) -> Survey:
        """Commit pending attribute changes on an attached survey."""
        await self._session.commit()
        await self._session.refresh(survey)
        return survey

    async def delete(self, survey_id: int) -> bool:
        """Delete a survey; its questions, responses and answers cascade."""
        result = await self._session.execute(delete(Survey).where(Survey.id == survey_id))
        await self._session.commit()
        return result.rowcount > 0
