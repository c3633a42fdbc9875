"""
Pydantic schemas for response submission and retrieval.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from survey_api.shared.pagination import PaginationMeta

MAX_ANSWERS = 500


class AnswerSubmission(BaseModel):
    """One (question, value) pair of a submission."""

    question_id: int = Field(..., gt=0)
    value: str = Field(..., min_length=1, max_length=5000)


class ResponseSubmit(BaseModel):
    """Submission request body."""

    answers: list[AnswerSubmission] = Field(default_factory=list, max_length=MAX_ANSWERS)


class SubmissionReceipt(BaseModel):
    """Proof of a committed submission."""

    model_config = ConfigDict(frozen=True)

    response_id: int
    submitted_at: datetime


class AnswerView(BaseModel):
    """Persisted answer."""

    model_config = ConfigDict(frozen=True)

    id: int
    question_id: int
    value: str


class ResponseDetail(BaseModel):
    """Persisted response with its answers."""

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    survey_id: int
    submitted_at: datetime
    answers: list[AnswerView]


class ResponseListItem(BaseModel):
    """Response summary for list views."""

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    submitted_at: datetime


class ResponseListResponse(BaseModel):
    """Paginated response list."""

    items: list[ResponseListItem]
    meta: PaginationMeta
