"""
Row → transfer object mapping for surveys and questions.
"""

from collections.abc import Iterable

from survey_api.surveys.models import Question, QuestionType, Survey
from survey_api.surveys.schemas import QuestionView, SurveyDetail, SurveyListItem


def to_question_view(question: Question) -> QuestionView:
    return QuestionView(
        id=question.id,
        survey_id=question.survey_id,
        text=question.text,
        type=QuestionType(question.question_type),
        is_required=question.is_required,
        order_index=question.order_index,
        options=list(question.options) if question.options else None,
    )


def to_survey_detail(survey: Survey, questions: Iterable[Question]) -> SurveyDetail:
    """Map a survey row and its question rows; questions come out sorted by order_index."""
    ordered = sorted(questions, key=lambda q: q.order_index)
    return SurveyDetail(
        id=survey.id,
        owner_id=survey.owner_id,
        title=survey.title,
        description=survey.description,
        is_active=survey.is_active,
        created_at=survey.created_at,
        questions=[to_question_view(q) for q in ordered],
    )


def to_survey_list_item(survey: Survey) -> SurveyListItem:
    return SurveyListItem(
        id=survey.id,
        owner_id=survey.owner_id,
        title=survey.title,
        is_active=survey.is_active,
        created_at=survey.created_at,
    )
