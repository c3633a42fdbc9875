"""
Pydantic schemas for the assist endpoint.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AssistRequest(BaseModel):
    """Prompt to get a suggestion for."""

    prompt: str = Field(..., min_length=1, max_length=4000)
    limit: int = Field(default=5, ge=1, le=20)


class SimilarMemo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    content: str
    score: float
    updated_at: datetime


class AssistResponse(BaseModel):
    """Generated suggestion with the memos it drew on."""

    suggestion: str
    similar_memos: list[SimilarMemo]
