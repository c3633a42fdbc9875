"""
ORM model registry: importing this module registers every table on ``Base.metadata``.
"""

from survey_api.auth.models import RefreshToken
from survey_api.memos.models import Memo
from survey_api.responses.models import Answer, SurveyResponse
from survey_api.surveys.models import Question, QuestionType, Survey
from survey_api.users.models import User, UserRole

__all__ = [
    "Answer",
    "Memo",
    "Question",
    "QuestionType",
    "RefreshToken",
    "Survey",
    "SurveyResponse",
    "User",
    "UserRole",
]
