"""
Survey service.

Creates surveys together with their ordered questions as one atomic unit of
work and serves them back from the store.
"""

from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.shared.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    ValidationError,
)
from survey_api.shared.database import storage_errors, transaction
from survey_api.shared.logging import get_logger
from survey_api.surveys.mappers import to_survey_detail, to_survey_list_item
from survey_api.surveys.models import Question, QuestionType, Survey
from survey_api.surveys.repository import SurveyRepository, SurveyRepositoryProtocol
from survey_api.surveys.schemas import (
    QuestionCreate,
    SurveyDetail,
    SurveyListItem,
    SurveyUpdate,
)

logger = get_logger(__name__)


def _validate_questions(questions: Sequence[QuestionCreate]) -> None:
    if not questions:
        raise ValidationError(
            message="A survey needs at least one question",
            details={"field": "questions"},
        )
    for position, item in enumerate(questions):
        if not item.text or not item.text.strip():
            raise ValidationError(
                message=f"Question at position {position} has empty text",
                details={"field": f"questions[{position}].text"},
            )


class SurveyService:
    """Service for survey business logic."""

    def __init__(
        self,
        session: AsyncSession,
        repository: SurveyRepositoryProtocol | None = None,
    ) -> None:
        """Initialize service.

        Args:
            session: Session the repository writes through; transactions are opened on it.
            repository: Survey repository (defaults to one bound to ``session``).
        """
        self._session = session
        self._repository = repository or SurveyRepository(session)

    async def create_survey_with_questions(
        self,
        owner_id: int,
        title: str,
        description: str | None,
        questions: Sequence[QuestionCreate],
    ) -> SurveyDetail:
        """Persist a survey and all of its questions, or nothing.

        Questions are stored with ``order_index`` equal to their position in
        ``questions``. The result is re-read from the store after commit.

        Raises:
            ValidationError: Empty title, empty question list or empty question text.
            StorageError: Any storage failure; nothing is left behind.
        """
        if not title or not title.strip():
            raise ValidationError(message="Survey title is required", details={"field": "title"})
        _validate_questions(questions)

        try:
            async with transaction(self._session):
                survey = await self._repository.insert_survey(
                    Survey(
                        owner_id=owner_id,
                        title=title.strip(),
                        description=description,
                        is_active=True,
                    )
                )
                for position, item in enumerate(questions):
                    question_type = QuestionType(item.type)
                    await self._repository.insert_question(
                        Question(
                            survey_id=survey.id,
                            text=item.text.strip(),
                            question_type=question_type,
                            is_required=item.is_required,
                            order_index=position,
                            options=list(item.options) if question_type.is_choice and item.options else None,
                        )
                    )
                survey_id = survey.id
        except SQLAlchemyError as e:
            logger.exception(
                "Survey creation rolled back",
                extra={"owner_id": owner_id, "question_count": len(questions)},
            )
            raise StorageError() from e

        logger.info(
            "Survey created",
            extra={
                "survey_id": survey_id,
                "owner_id": owner_id,
                "question_count": len(questions),
            },
        )

        with storage_errors("Survey read-back", survey_id=survey_id):
            found = await self._repository.find_with_questions(survey_id)
        if found is None:
            raise NotFoundError(
                message=f"Survey with ID {survey_id} not found",
                details={"survey_id": survey_id},
            )
        return to_survey_detail(*found)

    async def get_survey_with_questions(self, survey_id: int) -> SurveyDetail:
        """Get a survey and its questions ordered by ``order_index``.

        Raises:
            NotFoundError: If the survey does not exist.
            StorageError: If the store fails.
        """
        survey = await self._get_survey(survey_id)
        with storage_errors("Question read", survey_id=survey_id):
            questions = await self._repository.get_questions(survey_id)
        return to_survey_detail(survey, questions)

    async def list_surveys(
        self,
        owner_id: int,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[SurveyListItem], int]:
        """List an owner's surveys with pagination."""
        with storage_errors("Survey listing", owner_id=owner_id):
            surveys, total = await self._repository.list_by_owner(
                owner_id,
                page=page,
                page_size=page_size,
            )
        return [to_survey_list_item(s) for s in surveys], total

    async def update_survey(
        self,
        survey_id: int,
        actor_id: int,
        data: SurveyUpdate,
    ) -> SurveyDetail:
        """Change title, description or active flag. Owner only.

        Raises:
            NotFoundError: If the survey does not exist.
            PermissionDeniedError: If ``actor_id`` does not own the survey.
            ValidationError: If a provided field is explicitly null where it can't be.
        """
        survey = await self._get_survey(survey_id)
        self._require_owner(survey, actor_id)

        update_data = data.model_dump(exclude_unset=True)
        for field in ("title", "is_active"):
            if field in update_data and update_data[field] is None:
                raise ValidationError(
                    message=f"{field} cannot be null",
                    details={"field": field},
                )

        for field, value in update_data.items():
            setattr(survey, field, value)

        try:
            survey = await self._repository.update(survey)
        except SQLAlchemyError as e:
            logger.exception("Survey update failed", extra={"survey_id": survey_id})
            raise StorageError() from e

        logger.info(
            "Survey updated",
            extra={
                "survey_id": survey_id,
                "actor_id": actor_id,
                "updated_fields": sorted(update_data),
            },
        )
        with storage_errors("Question read", survey_id=survey_id):
            questions = await self._repository.get_questions(survey_id)
        return to_survey_detail(survey, questions)

    async def delete_survey(self, survey_id: int, actor_id: int) -> None:
        """Delete a survey with its questions and collected responses. Owner only."""
        survey = await self._get_survey(survey_id)
        self._require_owner(survey, actor_id)

        try:
            await self._repository.delete(survey_id)
        except SQLAlchemyError as e:
            logger.exception("Survey delete failed", extra={"survey_id": survey_id})
            raise StorageError() from e

        logger.info("Survey deleted", extra={"survey_id": survey_id, "actor_id": actor_id})

    async def _get_survey(self, survey_id: int) -> Survey:
        with storage_errors("Survey read", survey_id=survey_id):
            survey = await self._repository.get_by_id(survey_id)
        if survey is None:
            raise NotFoundError(
                message=f"Survey with ID {survey_id} not found",
                details={"survey_id": survey_id},
            )
        return survey

    @staticmethod
    def _require_owner(survey: Survey, actor_id: int) -> None:
        if survey.owner_id != actor_id:
            raise PermissionDeniedError(
                message="Only the survey owner can modify this survey",
                details={"survey_id": survey.id},
            )
