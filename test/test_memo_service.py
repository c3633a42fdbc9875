"""Tests for memo service."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from survey_api.assist.fake import FakeAssistClient
from survey_api.memos.models import Memo
from survey_api.memos.repository import MemoRepository, MemoRepositoryProtocol
from survey_api.memos.service import MemoService
from survey_api.shared.exceptions import (
    AssistError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    ValidationError,
)


@pytest.fixture
def service(session, assist_client) -> MemoService:
    return MemoService(session, embedder=assist_client)


async def _stored(database, memo_id: int) -> Memo | None:
    async with database.session_factory() as fresh:
        return await MemoRepository(fresh).get_by_id(memo_id)


class TestCreateMemo:
    """Tests for MemoService.create_memo."""

    @pytest.mark.asyncio
    async def test_stores_content_and_embedding(self, service, make_user, database, assist_client):
        """Test a created memo is committed with the vector of its content."""
        user = await make_user()

        memo = await service.create_memo(user.id, "Ask about onboarding")

        assert memo.user_id == user.id
        assert memo.is_pinned is False
        assert memo.created_at is not None
        stored = await _stored(database, memo.id)
        assert stored.content == "Ask about onboarding"
        assert stored.embedding == pytest.approx(await assist_client.embed("Ask about onboarding"))

    @pytest.mark.asyncio
    async def test_blank_content_rejected(self, service, make_user, count_rows):
        user = await make_user()

        with pytest.raises(ValidationError) as exc_info:
            await service.create_memo(user.id, "   ")

        assert exc_info.value.details == {"field": "content"}
        assert await count_rows(Memo) == 0

    @pytest.mark.asyncio
    async def test_embedding_failure_stores_nothing(self, session, make_user, count_rows):
        """Test an assist backend failure leaves no memo behind."""
        user = await make_user()
        embedder = AsyncMock(spec=FakeAssistClient)
        embedder.embed.side_effect = AssistError()

        with pytest.raises(AssistError):
            await MemoService(session, embedder=embedder).create_memo(user.id, "lost")

        assert await count_rows(Memo) == 0


class TestGetMemo:
    """Tests for MemoService.get_memo."""

    @pytest.mark.asyncio
    async def test_owner_reads(self, service, make_user):
        user = await make_user()
        created = await service.create_memo(user.id, "mine")

        fetched = await service.get_memo(user.id, created.id)

        assert (fetched.id, fetched.content, fetched.user_id) == (created.id, "mine", user.id)

    @pytest.mark.asyncio
    async def test_other_user_denied(self, service, make_user):
        """Test a memo of another user is a permission error, not a not-found."""
        owner = await make_user()
        other = await make_user()
        created = await service.create_memo(owner.id, "private")

        with pytest.raises(PermissionDeniedError) as exc_info:
            await service.get_memo(other.id, created.id)

        assert exc_info.value.details == {"memo_id": created.id}

    @pytest.mark.asyncio
    async def test_missing(self, service, make_user):
        user = await make_user()

        with pytest.raises(NotFoundError):
            await service.get_memo(user.id, 404)

    @pytest.mark.asyncio
    async def test_read_failure_is_storage_error(self, session, assist_client):
        repository = AsyncMock(spec=MemoRepositoryProtocol)
        repository.get_by_id.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        service = MemoService(session, embedder=assist_client, repository=repository)

        with pytest.raises(StorageError):
            await service.get_memo(1, 1)


class TestUpdateMemo:
    """Tests for MemoService.update_memo."""

    @pytest.mark.asyncio
    async def test_reembeds_and_moves_updated_at(self, service, make_user, database, assist_client):
        """Test new content gets a new vector and a later updated_at."""
        user = await make_user()
        created = await service.create_memo(user.id, "first draft")
        before = await _stored(database, created.id)

        updated = await service.update_memo(user.id, created.id, "second draft about pricing")

        assert updated.content == "second draft about pricing"
        stored = await _stored(database, created.id)
        assert stored.created_at == before.created_at
        assert stored.updated_at > before.updated_at
        assert stored.embedding == pytest.approx(await assist_client.embed("second draft about pricing"))

    @pytest.mark.asyncio
    async def test_other_user_cannot_update(self, service, make_user, database):
        owner = await make_user()
        other = await make_user()
        created = await service.create_memo(owner.id, "original")

        with pytest.raises(PermissionDeniedError):
            await service.update_memo(other.id, created.id, "hijacked")

        assert (await _stored(database, created.id)).content == "original"

    @pytest.mark.asyncio
    async def test_embedding_failure_keeps_old_content(self, session, make_user, database, assist_client):
        user = await make_user()
        created = await MemoService(session, embedder=assist_client).create_memo(user.id, "keep me")
        failing = AsyncMock(spec=FakeAssistClient)
        failing.embed.side_effect = AssistError()

        with pytest.raises(AssistError):
            await MemoService(session, embedder=failing).update_memo(user.id, created.id, "never stored")

        assert (await _stored(database, created.id)).content == "keep me"


class TestTogglePin:
    """Tests for MemoService.toggle_pin."""

    @pytest.mark.asyncio
    async def test_flips_each_call(self, service, make_user):
        user = await make_user()
        created = await service.create_memo(user.id, "pin me")

        pinned = await service.toggle_pin(user.id, created.id)
        unpinned = await service.toggle_pin(user.id, created.id)

        assert pinned.is_pinned is True
        assert unpinned.is_pinned is False

    @pytest.mark.asyncio
    async def test_other_user_cannot_pin(self, service, make_user):
        owner = await make_user()
        other = await make_user()
        created = await service.create_memo(owner.id, "not yours")

        with pytest.raises(PermissionDeniedError):
            await service.toggle_pin(other.id, created.id)


class TestListMemos:
    """Tests for MemoService.list_memos."""

    @pytest.mark.asyncio
    async def test_pinned_first_then_recent(self, service, make_user):
        """Test pinned memos lead, each group newest first."""
        user = await make_user()
        oldest = await service.create_memo(user.id, "oldest")
        middle = await service.create_memo(user.id, "middle")
        newest = await service.create_memo(user.id, "newest")
        await service.toggle_pin(user.id, oldest.id)

        memos = await service.list_memos(user.id)

        assert [m.id for m in memos] == [oldest.id, newest.id, middle.id]

    @pytest.mark.asyncio
    async def test_scoped_to_user(self, service, make_user):
        owner = await make_user()
        other = await make_user()
        await service.create_memo(owner.id, "owner memo")

        assert await service.list_memos(other.id) == []


class TestDeleteMemo:
    """Tests for MemoService.delete_memo."""

    @pytest.mark.asyncio
    async def test_deleted_memo_is_not_found(self, service, make_user, count_rows):
        """Test a deleted memo is gone for good."""
        user = await make_user()
        created = await service.create_memo(user.id, "short lived")

        await service.delete_memo(user.id, created.id)

        assert await count_rows(Memo) == 0
        with pytest.raises(NotFoundError):
            await service.get_memo(user.id, created.id)

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, service, make_user, count_rows):
        owner = await make_user()
        other = await make_user()
        created = await service.create_memo(owner.id, "survives")

        with pytest.raises(PermissionDeniedError):
            await service.delete_memo(other.id, created.id)

        assert await count_rows(Memo) == 1
