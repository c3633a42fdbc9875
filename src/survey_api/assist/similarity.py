"""
Cosine ranking of a user's memos against a query vector.
"""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from survey_api.memos.models import Memo


@dataclass(frozen=True)
class MemoMatch:
    memo: Memo
    score: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors; 0.0 when either is all zeros."""
    if len(a) != len(b):
        raise ValueError(f"Vector dimensions differ: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def rank_by_similarity(
    vector: Sequence[float],
    memos: Iterable[Memo],
    limit: int = 5,
) -> list[MemoMatch]:
    """Top ``limit`` memos by cosine similarity to ``vector``, best first.

    Memos without an embedding, or embedded at another dimension, are skipped.
    """
    if limit <= 0:
        return []
    matches = [
        MemoMatch(memo=memo, score=cosine_similarity(memo.embedding, vector))
        for memo in memos
        if memo.embedding is not None and len(memo.embedding) == len(vector)
    ]
    matches.sort(key=lambda m: (-m.score, m.memo.id))
    return matches[:limit]
