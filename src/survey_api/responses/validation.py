"""
Answer coverage checks run before a submission is written.
"""

from collections.abc import Iterable, Sequence

from survey_api.responses.schemas import AnswerSubmission
from survey_api.shared.exceptions import ValidationError
from survey_api.surveys.models import Question, QuestionType

MULTIPLE_CHOICE_SEPARATOR = "\n"


def required_question_ids(questions: Sequence[Question]) -> list[int]:
    """Ids of required questions in ``order_index`` order."""
    ordered = sorted(questions, key=lambda q: q.order_index)
    return [q.id for q in ordered if q.is_required]


def answered_question_ids(answers: Iterable[AnswerSubmission]) -> set[int]:
    return {a.question_id for a in answers}


def first_missing_required(
    questions: Sequence[Question],
    answers: Sequence[AnswerSubmission],
) -> int | None:
    answered = answered_question_ids(answers)
    for question_id in required_question_ids(questions):
        if question_id not in answered:
            return question_id
    return None


def first_foreign_question(
    questions: Sequence[Question],
    answers: Sequence[AnswerSubmission],
) -> int | None:
    """First answered question id that does not belong to the survey."""
    known = {q.id for q in questions}
    for answer in answers:
        if answer.question_id not in known:
            return answer.question_id
    return None


def first_duplicate_answer(answers: Sequence[AnswerSubmission]) -> int | None:
    seen: set[int] = set()
    for answer in answers:
        if answer.question_id in seen:
            return answer.question_id
        seen.add(answer.question_id)
    return None


def selected_options(question: Question, value: str) -> list[str]:
    """Options picked by ``value``; multiple-choice values hold one option per line."""
    if QuestionType(question.question_type) is QuestionType.MULTIPLE_CHOICE:
        return [part.strip() for part in value.split(MULTIPLE_CHOICE_SEPARATOR) if part.strip()]
    return [value.strip()]


def first_invalid_choice(
    questions: Sequence[Question],
    answers: Sequence[AnswerSubmission],
) -> tuple[int, str] | None:
    """First (question id, option) where a choice answer picks something not offered."""
    by_id = {q.id: q for q in questions}
    for answer in answers:
        question = by_id.get(answer.question_id)
        if question is None or not QuestionType(question.question_type).is_choice:
            continue
        offered = set(question.options or [])
        picked = selected_options(question, answer.value)
        if not picked:
            return answer.question_id, ""
        for option in picked:
            if option not in offered:
                return answer.question_id, option
    return None


def validate_answers(
    survey_id: int,
    questions: Sequence[Question],
    answers: Sequence[AnswerSubmission],
) -> None:
    """Reject a submission that fails a coverage or choice check.

    Raises:
        ValidationError: On the first gap found. ``details["question_id"]``
            names the offending question.
    """
    missing = first_missing_required(questions, answers)
    if missing is not None:
        raise ValidationError(
            message=f"Question {missing} is required",
            details={"question_id": missing, "reason": "missing_required"},
        )

    foreign = first_foreign_question(questions, answers)
    if foreign is not None:
        raise ValidationError(
            message=f"Question {foreign} does not belong to survey {survey_id}",
            details={"question_id": foreign, "reason": "unknown_question"},
        )

    duplicate = first_duplicate_answer(answers)
    if duplicate is not None:
        raise ValidationError(
            message=f"Question {duplicate} is answered more than once",
            details={"question_id": duplicate, "reason": "duplicate_answer"},
        )

    invalid = first_invalid_choice(questions, answers)
    if invalid is not None:
        question_id, option = invalid
        raise ValidationError(
            message=f"'{option}' is not an option of question {question_id}",
            details={"question_id": question_id, "option": option, "reason": "invalid_option"},
        )
