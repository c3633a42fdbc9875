"""
Response service.

Submits a user's answers to a survey as one atomic unit of work and serves
stored responses back to their submitter and to the survey owner.
"""

from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.responses.mappers import to_receipt, to_response_detail, to_response_list_item
from survey_api.responses.models import Answer, SurveyResponse
from survey_api.responses.repository import (
    ResponseRepository,
    ResponseRepositoryProtocol,
    is_duplicate_submission_error,
)
from survey_api.responses.schemas import (
    AnswerSubmission,
    ResponseDetail,
    ResponseListItem,
    SubmissionReceipt,
)
from survey_api.responses.validation import validate_answers
from survey_api.shared.database import storage_errors, transaction
from survey_api.shared.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
)
from survey_api.shared.logging import get_logger
from survey_api.surveys.models import Survey
from survey_api.surveys.repository import SurveyRepository, SurveyRepositoryProtocol

logger = get_logger(__name__)


class ResponseService:
    """Service for response business logic."""

    def __init__(
        self,
        session: AsyncSession,
        response_repository: ResponseRepositoryProtocol | None = None,
        survey_repository: SurveyRepositoryProtocol | None = None,
    ) -> None:
        """Initialize service.

        Args:
            session: Session both repositories use; the submission transaction is opened on it.
            response_repository: Response repository (defaults to one bound to ``session``).
            survey_repository: Survey repository (defaults to one bound to ``session``).
        """
        self._session = session
        self._responses = response_repository or ResponseRepository(session)
        self._surveys = survey_repository or SurveyRepository(session)

    async def submit_survey_response(
        self,
        user_id: int,
        survey_id: int,
        answers: Sequence[AnswerSubmission],
    ) -> SubmissionReceipt:
        """Record one user's answers to a survey.

        Checks run in order and stop at the first failure: survey exists,
        survey is active, no earlier submission by this user, every required
        question answered, every answer belongs to the survey. The response
        header and its answers are then written in one transaction.

        Raises:
            NotFoundError: Survey does not exist.
            InvalidStateError: Survey is closed.
            ConflictError: The user already submitted a response to this survey.
            ValidationError: Missing required answer, unknown or repeated question.
            StorageError: Any other storage failure; nothing is left behind.
        """
        with storage_errors("Survey read", survey_id=survey_id):
            survey = await self._surveys.get_by_id(survey_id)
        if survey is None:
            raise NotFoundError(
                message=f"Survey with ID {survey_id} not found",
                details={"survey_id": survey_id},
            )

        if not survey.is_active:
            raise InvalidStateError(
                message="Survey is closed",
                details={"survey_id": survey_id},
            )

        with storage_errors("Submission pre-checks", user_id=user_id, survey_id=survey_id):
            if await self._responses.exists_for_user_and_survey(user_id, survey_id):
                raise self._already_submitted(user_id, survey_id)
            questions = await self._surveys.get_questions(survey_id)

        validate_answers(survey_id, questions, answers)

        try:
            async with transaction(self._session):
                response = await self._responses.insert_response(
                    SurveyResponse(
                        user_id=user_id,
                        survey_id=survey_id,
                        submitted_at=datetime.now(timezone.utc),
                    )
                )
                for answer in answers:
                    await self._responses.insert_answer(
                        Answer(
                            response_id=response.id,
                            question_id=answer.question_id,
                            value=answer.value,
                        )
                    )
                receipt = to_receipt(response)
        except IntegrityError as e:
            if is_duplicate_submission_error(e):
                # Lost the race against a concurrent submission.
                logger.info(
                    "Duplicate submission rejected by constraint",
                    extra={"user_id": user_id, "survey_id": survey_id},
                )
                raise self._already_submitted(user_id, survey_id) from e
            logger.exception(
                "Response submission rolled back",
                extra={"user_id": user_id, "survey_id": survey_id},
            )
            raise StorageError() from e
        except SQLAlchemyError as e:
            logger.exception(
                "Response submission rolled back",
                extra={"user_id": user_id, "survey_id": survey_id},
            )
            raise StorageError() from e

        logger.info(
            "Response submitted",
            extra={
                "response_id": receipt.response_id,
                "user_id": user_id,
                "survey_id": survey_id,
                "answer_count": len(answers),
            },
        )
        return receipt

    async def get_response(self, response_id: int, actor_id: int) -> ResponseDetail:
        """Stored response with its answers. Visible to the submitter and the survey owner.

        Raises:
            NotFoundError: If the response does not exist.
            PermissionDeniedError: If ``actor_id`` is neither submitter nor owner.
        """
        with storage_errors("Response read", response_id=response_id):
            response = await self._responses.get_by_id(response_id)
            if response is None:
                raise NotFoundError(
                    message=f"Response with ID {response_id} not found",
                    details={"response_id": response_id},
                )

            if response.user_id != actor_id:
                survey = await self._surveys.get_by_id(response.survey_id)
                if survey is None or survey.owner_id != actor_id:
                    raise PermissionDeniedError(details={"response_id": response_id})

            answers = await self._responses.get_answers(response_id)
        return to_response_detail(response, answers)

    async def list_responses(
        self,
        survey_id: int,
        actor_id: int,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[ResponseListItem], int]:
        """Responses collected for a survey. Owner only."""
        survey = await self._get_owned_survey(survey_id, actor_id)
        with storage_errors("Response listing", survey_id=survey_id):
            responses, total = await self._responses.list_by_survey(
                survey.id,
                page=page,
                page_size=page_size,
            )
        return [to_response_list_item(r) for r in responses], total

    async def _get_owned_survey(self, survey_id: int, actor_id: int) -> Survey:
        with storage_errors("Survey read", survey_id=survey_id):
            survey = await self._surveys.get_by_id(survey_id)
        if survey is None:
            raise NotFoundError(
                message=f"Survey with ID {survey_id} not found",
                details={"survey_id": survey_id},
            )
        if survey.owner_id != actor_id:
            raise PermissionDeniedError(
                message="Only the survey owner can view its responses",
                details={"survey_id": survey_id},
            )
        return survey

    @staticmethod
    def _already_submitted(user_id: int, survey_id: int) -> ConflictError:
        return ConflictError(
            message="Response already submitted for this survey",
            details={"user_id": user_id, "survey_id": survey_id},
        )
