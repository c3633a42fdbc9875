"""
Pydantic schemas for memos.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from survey_api.memos.models import Memo


class MemoCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class MemoUpdate(BaseModel):
    """Replacement content. The memo is re-embedded."""

    content: str = Field(..., min_length=1, max_length=5000)


class MemoView(BaseModel):
    """Public view of a memo. The embedding stays server-side."""

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    content: str
    is_pinned: bool
    created_at: datetime
    updated_at: datetime


def to_memo_view(memo: Memo) -> MemoView:
    return MemoView(
        id=memo.id,
        user_id=memo.user_id,
        content=memo.content,
        is_pinned=memo.is_pinned,
        created_at=memo.created_at,
        updated_at=memo.updated_at,
    )
