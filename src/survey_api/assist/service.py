"""
Assist service: drafts suggestions grounded on the caller's own memos.
"""

from survey_api.assist.interface import Embedder, TextGenerator
from survey_api.assist.schemas import AssistResponse, SimilarMemo
from survey_api.assist.similarity import rank_by_similarity
from survey_api.memos.repository import MemoRepositoryProtocol
from survey_api.shared.database import storage_errors
from survey_api.shared.logging import get_logger

logger = get_logger(__name__)


class AssistService:
    """Service for memo-grounded suggestions."""

    def __init__(
        self,
        embedder: Embedder,
        generator: TextGenerator,
        memos: MemoRepositoryProtocol,
    ) -> None:
        """Initialize service.

        Args:
            embedder: Backend turning text into vectors.
            generator: Backend drafting the suggestion text.
            memos: Memo repository searched for context.
        """
        self._embedder = embedder
        self._generator = generator
        self._memos = memos

    async def suggest(self, user_id: int, prompt: str, limit: int = 5) -> AssistResponse:
        """Draft a suggestion for ``prompt`` using the caller's most similar memos.

        Raises:
            AssistError: If the embedding or generation backend fails.
            StorageError: If the memos cannot be read.
        """
        vector = await self._embedder.embed(prompt)
        with storage_errors("Memo search", user_id=user_id):
            candidates = await self._memos.list_embedded(user_id)
        matches = rank_by_similarity(vector, candidates, limit=limit)
        suggestion = await self._generator.generate(prompt, [m.memo.content for m in matches])

        logger.info(
            "Suggestion generated",
            extra={"user_id": user_id, "similar_memo_count": len(matches)},
        )
        return AssistResponse(
            suggestion=suggestion,
            similar_memos=[
                SimilarMemo(
                    id=m.memo.id,
                    content=m.memo.content,
                    score=m.score,
                    updated_at=m.memo.updated_at,
                )
                for m in matches
            ],
        )
