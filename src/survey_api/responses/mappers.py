"""
Row → transfer object mapping for responses and answers.
"""

from collections.abc import Iterable

from survey_api.responses.models import Answer, SurveyResponse
from survey_api.responses.schemas import (
    AnswerView,
    ResponseDetail,
    ResponseListItem,
    SubmissionReceipt,
)


def to_receipt(response: SurveyResponse) -> SubmissionReceipt:
    return SubmissionReceipt(response_id=response.id, submitted_at=response.submitted_at)


def to_answer_view(answer: Answer) -> AnswerView:
    return AnswerView(id=answer.id, question_id=answer.question_id, value=answer.value)


def to_response_detail(response: SurveyResponse, answers: Iterable[Answer]) -> ResponseDetail:
    return ResponseDetail(
        id=response.id,
        user_id=response.user_id,
        survey_id=response.survey_id,
        submitted_at=response.submitted_at,
        answers=[to_answer_view(a) for a in answers],
    )


def to_response_list_item(response: SurveyResponse) -> ResponseListItem:
    return ResponseListItem(
        id=response.id,
        user_id=response.user_id,
        submitted_at=response.submitted_at,
    )
