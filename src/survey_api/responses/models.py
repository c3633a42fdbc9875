"""
SQLAlchemy models for survey responses and their answers.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from survey_api.shared.database import Base

# One response per (user, survey); violations are reported as duplicate submissions.
UNIQUE_USER_SURVEY_CONSTRAINT = "uq_responses_user_survey"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SurveyResponse(Base):
    """One user's single submission against one survey."""

    __tablename__ = "responses"
    __table_args__ = (
        UniqueConstraint("user_id", "survey_id", name=UNIQUE_USER_SURVEY_CONSTRAINT),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    survey_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("surveys.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    def __repr__(self) -> str:
        return (
            f"<SurveyResponse(id={self.id}, user_id={self.user_id}, "
            f"survey_id={self.survey_id})>"
        )


class Answer(Base):
    """One value supplied for one question within a response."""

    __tablename__ = "answers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    response_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("responses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    value: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Answer(id={self.id}, response_id={self.response_id}, "
            f"question_id={self.question_id})>"
        )
