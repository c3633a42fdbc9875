"""
Response repository for database operations.

``insert_*`` methods only flush; the caller's transaction decides whether the
rows survive.
"""

from typing import Protocol

from sqlalchemy import exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.responses.models import UNIQUE_USER_SURVEY_CONSTRAINT, Answer, SurveyResponse
from survey_api.shared.pagination import page_offset


def is_duplicate_submission_error(error: IntegrityError) -> bool:
    """True when ``error`` was raised by the one-response-per-(user, survey) constraint."""
    message = str(error.orig) if error.orig is not None else str(error)
    if UNIQUE_USER_SURVEY_CONSTRAINT in message:
        return True
    # SQLite reports the columns rather than the constraint name.
    return "UNIQUE constraint failed: responses.user_id, responses.survey_id" in message


class ResponseRepositoryProtocol(Protocol):
    """Protocol for response repository operations."""

    async def exists_for_user_and_survey(self, user_id: int, survey_id: int) -> bool: ...
    async def insert_response(self, response: SurveyResponse) -> SurveyResponse: ...
    async def insert_answer(self, answer: Answer) -> Answer: ...
    async def get_by_id(self, response_id: int) -> SurveyResponse | None: ...
    async def get_answers(self, response_id: int) -> list[Answer]: ...
    async def list_by_survey(
        self, survey_id: int, page: int = 1, page_size: int = 20
    ) -> tuple[list[SurveyResponse], int]: ...


class ResponseRepository:
    """Repository for response headers and their answers."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def exists_for_user_and_survey(self, user_id: int, survey_id: int) -> bool:
        stmt = select(
            exists().where(
                SurveyResponse.user_id == user_id,
                SurveyResponse.survey_id == survey_id,
            )
        )
        result = await self._session.execute(stmt)
        return bool(result.scalar())

    async def insert_response(self, response: SurveyResponse) -> SurveyResponse:
        """Stage a response header inside the open transaction; assigns its id."""
        self._session.add(response)
        await self._session.flush()
        return response

    async def insert_answer(self, answer: Answer) -> Answer:
        """Stage an answer row inside the open transaction."""
        self._session.add(answer)
        await self._session.flush()
        return answer

    async def get_by_id(self, response_id: int) -> SurveyResponse | None:
        result = await self._session.execute(
            select(SurveyResponse).where(SurveyResponse.id == response_id)
        )
        return result.scalar_one_or_none()

    async def get_answers(self, response_id: int) -> list[Answer]:
        result = await self._session.execute(
            select(Answer).where(Answer.response_id == response_id).order_by(Answer.id.asc())
        )
        return list(result.scalars().all())

    async def count_by_survey(self, survey_id: int) -> int:
        result = await self._session.execute(
            select(func.count(SurveyResponse.id)).where(SurveyResponse.survey_id == survey_id)
        )
        return result.scalar() or 0

    async def list_by_survey(
        self,
        survey_id: int,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[SurveyResponse], int]:
        """Responses to one survey, newest first, with total count."""
        total = await self.count_by_survey(survey_id)
        stmt = (
            select(SurveyResponse)
            .where(SurveyResponse.survey_id == survey_id)
            .order_by(SurveyResponse.submitted_at.desc(), SurveyResponse.id.desc())
            .offset(page_offset(page, page_size))
            .limit(page_size)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all()), total

