"""
Pydantic schemas for survey API.

Defines request/response models for survey authoring and retrieval.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from survey_api.shared.pagination import PaginationMeta
from survey_api.surveys.models import QuestionType

MAX_QUESTIONS = 100


class QuestionCreate(BaseModel):
    """One question of a survey creation request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(..., min_length=1, max_length=500, description="Question text")
    type: QuestionType = Field(..., description="Question type")
    is_required: bool = Field(default=False, description="Whether an answer is mandatory")
    options: list[str] | None = Field(
        default=None,
        description="Selectable options (choice types only)",
    )

    @model_validator(mode="after")
    def validate_options(self) -> "QuestionCreate":
        if self.type.is_choice:
            options = [o.strip() for o in (self.options or []) if o and o.strip()]
            if len(options) < 2:
                raise ValueError("Choice questions need at least two options")
            if len(set(options)) != len(options):
                raise ValueError("Choice options must be distinct")
            self.options = options
        elif self.options:
            raise ValueError(f"Options are not allowed for {self.type.value} questions")
        else:
            self.options = None
        return self


class SurveyCreate(BaseModel):
    """Survey creation request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    questions: list[QuestionCreate] = Field(..., min_length=1, max_length=MAX_QUESTIONS)


class SurveyUpdate(BaseModel):
    """Partial survey update. Questions are immutable once created."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    is_active: bool | None = Field(default=None, description="False closes the survey")


class QuestionView(BaseModel):
    """Persisted question."""

    model_config = ConfigDict(frozen=True)

    id: int
    survey_id: int
    text: str
    type: QuestionType
    is_required: bool
    order_index: int
    options: list[str] | None = None


class SurveyDetail(BaseModel):
    """Persisted survey with its questions in order."""

    model_config = ConfigDict(frozen=True)

    id: int
    owner_id: int
    title: str
    description: str | None
    is_active: bool
    created_at: datetime
    questions: list[QuestionView]


class SurveyListItem(BaseModel):
    """Survey summary for list views."""

    model_config = ConfigDict(frozen=True)

    id: int
    owner_id: int
    title: str
    is_active: bool
    created_at: datetime


class SurveyListResponse(BaseModel):
    """Paginated survey list."""

    items: list[SurveyListItem]
    meta: PaginationMeta
