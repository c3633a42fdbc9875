"""
Memo service.

Every write embeds the memo content first, so a stored memo always carries
the vector of its current content. An embedding failure leaves the store
untouched.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.assist.interface import Embedder
from survey_api.memos.models import Memo
from survey_api.memos.repository import MemoRepository, MemoRepositoryProtocol
from survey_api.memos.schemas import MemoView, to_memo_view
from survey_api.shared.database import storage_errors, transaction
from survey_api.shared.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    ValidationError,
)
from survey_api.shared.logging import get_logger

logger = get_logger(__name__)


def _require_content(content: str) -> str:
    if not content or not content.strip():
        raise ValidationError(message="Memo content is required", details={"field": "content"})
    return content


class MemoService:
    """Service for memo business logic."""

    def __init__(
        self,
        session: AsyncSession,
        embedder: Embedder,
        repository: MemoRepositoryProtocol | None = None,
    ) -> None:
        self._session = session
        self._embedder = embedder
        self._repository = repository or MemoRepository(session)

    async def create_memo(self, user_id: int, content: str) -> MemoView:
        """Embed and store a new memo.

        Raises:
            ValidationError: Blank content.
            AssistError: The embedding backend failed; nothing is stored.
            StorageError: The store failed.
        """
        _require_content(content)
        vector = await self._embedder.embed(content)

        try:
            async with transaction(self._session):
                memo = await self._repository.insert(
                    Memo(user_id=user_id, content=content, is_pinned=False, embedding=vector)
                )
                view = to_memo_view(memo)
        except SQLAlchemyError as e:
            logger.exception("Memo creation rolled back", extra={"user_id": user_id})
            raise StorageError() from e

        logger.info("Memo created", extra={"memo_id": view.id, "user_id": user_id})
        return view

    async def list_memos(self, user_id: int) -> list[MemoView]:
        """The caller's memos, pinned first, then most recently updated."""
        with storage_errors("Memo listing", user_id=user_id):
            memos = await self._repository.list_by_user(user_id)
        return [to_memo_view(m) for m in memos]

    async def get_memo(self, user_id: int, memo_id: int) -> MemoView:
        """One memo of the caller.

        Raises:
            NotFoundError: If the memo does not exist.
            PermissionDeniedError: If another user owns it.
        """
        return to_memo_view(await self._get_owned(user_id, memo_id))

    async def update_memo(self, user_id: int, memo_id: int, content: str) -> MemoView:
        """Replace a memo's content and its embedding."""
        _require_content(content)
        memo = await self._get_owned(user_id, memo_id)
        vector = await self._embedder.embed(content)

        memo.content = content
        memo.embedding = vector
        memo = await self._save(memo, "Memo update")

        logger.info("Memo updated", extra={"memo_id": memo_id, "user_id": user_id})
        return to_memo_view(memo)

    async def toggle_pin(self, user_id: int, memo_id: int) -> MemoView:
        """Flip the pinned flag of a memo."""
        memo = await self._get_owned(user_id, memo_id)
        memo.is_pinned = not memo.is_pinned
        memo = await self._save(memo, "Memo pin toggle")

        logger.info(
            "Memo pin toggled",
            extra={"memo_id": memo_id, "user_id": user_id, "is_pinned": memo.is_pinned},
        )
        return to_memo_view(memo)

    async def delete_memo(self, user_id: int, memo_id: int) -> None:
        await self._get_owned(user_id, memo_id)
        try:
            await self._repository.delete(memo_id)
        except SQLAlchemyError as e:
            logger.exception("Memo delete failed", extra={"memo_id": memo_id})
            raise StorageError() from e

        logger.info("Memo deleted", extra={"memo_id": memo_id, "user_id": user_id})

    async def _save(self, memo: Memo, operation: str) -> Memo:
        try:
            return await self._repository.update(memo)
        except SQLAlchemyError as e:
            logger.exception("%s failed", operation, extra={"memo_id": memo.id})
            raise StorageError() from e

    async def _get_owned(self, user_id: int, memo_id: int) -> Memo:
        with storage_errors("Memo read", memo_id=memo_id):
            memo = await self._repository.get_by_id(memo_id)
        if memo is None:
            raise NotFoundError(
                message=f"Memo with ID {memo_id} not found",
                details={"memo_id": memo_id},
            )
        if memo.user_id != user_id:
            raise PermissionDeniedError(
                message="Memo belongs to another user",
                details={"memo_id": memo_id},
            )
        return memo
