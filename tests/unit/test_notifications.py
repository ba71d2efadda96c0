"""Unit tests for the Notifier writer and the notification bell service."""

import base64
import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from src.cm_common.enums import NotificationType
from src.cm_common.errors import NotificationNotFoundError
from src.cm_notification.application.notifier import Notifier
from src.cm_notification.application.schemas import cursor_decode
from src.cm_notification.application.service import NotificationApplicationService
from src.cm_notification.domain.models import Notification


class _Savepoint:
    def __init__(self) -> None:
        self.exited_with: type[BaseException] | None = None

    async def __aenter__(self) -> "_Savepoint":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self.exited_with = exc_type
        return False


def _notification(**kwargs) -> Notification:
    defaults = dict(
        id="n-1", user_id="buyer-1", type="offer_accepted", title="Offer accepted",
        message="...", created_at=datetime(2026, 5, 4, tzinfo=UTC),
    )
    defaults.update(kwargs)
    return Notification(**defaults)


@pytest.fixture
def db() -> MagicMock:
    session = MagicMock()
    session.savepoint = _Savepoint()
    session.begin_nested = MagicMock(return_value=session.savepoint)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


class TestNotifier:
    async def test_writes_inside_savepoint(self, db) -> None:
        repo = AsyncMock()
        repo.create.side_effect = lambda db, n: n

        written = await Notifier(repo=repo).notify(
            db,
            "buyer-1",
            NotificationType.CARD_SOLD,
            "Transaction completed",
            "Sold",
            card_id="card-1",
            transaction_id="tx-1",
        )

        db.begin_nested.assert_called_once()
        assert written.type == "card_sold"
        assert written.user_id == "buyer-1"
        assert written.transaction_id == "tx-1"
        assert written.read is False

    async def test_failed_insert_is_swallowed(self, db) -> None:
        repo = AsyncMock()
        repo.create.side_effect = OperationalError("INSERT", {}, Exception("disk full"))

        written = await Notifier(repo=repo).notify(
            db, "seller-1", NotificationType.OFFER_RECEIVED, "New offer", "..."
        )

        assert written is None
        assert db.savepoint.exited_with is OperationalError
        db.rollback.assert_not_awaited()

    async def test_non_database_errors_propagate(self, db) -> None:
        repo = AsyncMock()
        repo.create.side_effect = RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await Notifier(repo=repo).notify(
                db, "seller-1", NotificationType.OFFER_RECEIVED, "New offer", "..."
            )


class TestNotificationService:
    async def test_list_paginates(self, db) -> None:
        repo = AsyncMock()
        repo.list_for_user.return_value = [_notification(id=f"n-{i}") for i in range(3)]

        resp = await NotificationApplicationService(repo=repo).list_notifications(
            db, "buyer-1", unread_only=True, cursor=None, limit=2
        )

        assert [n.id for n in resp.items] == ["n-0", "n-1"]
        assert resp.has_more is True
        assert repo.list_for_user.await_args.args[2] is True

    async def test_mark_read(self, db) -> None:
        repo = AsyncMock()
        repo.mark_read.return_value = _notification(read=True)

        resp = await NotificationApplicationService(repo=repo).mark_read(db, "buyer-1", "n-1")

        assert resp.read is True
        repo.mark_read.assert_awaited_once_with(db, "n-1", "buyer-1")
        db.commit.assert_awaited_once()

    async def test_mark_read_of_someone_elses_notification(self, db) -> None:
        repo = AsyncMock()
        repo.mark_read.return_value = None

        with pytest.raises(NotificationNotFoundError):
            await NotificationApplicationService(repo=repo).mark_read(db, "buyer-2", "n-1")
        db.rollback.assert_awaited_once()

    async def test_mark_all_read(self, db) -> None:
        repo = AsyncMock()
        repo.mark_all_read.return_value = 4
        resp = await NotificationApplicationService(repo=repo).mark_all_read(db, "buyer-1")
        assert resp.updated == 4

    async def test_unread_count(self, db) -> None:
        repo = AsyncMock()
        repo.count_unread.return_value = 7
        resp = await NotificationApplicationService(repo=repo).unread_count(db, "buyer-1")
        assert resp.unread == 7

    async def test_next_cursor_feeds_the_following_page(self, db) -> None:
        repo = AsyncMock()
        repo.list_for_user.return_value = [_notification(id=f"n-{i}") for i in range(3)]
        service = NotificationApplicationService(repo=repo)

        first = await service.list_notifications(
            db, "buyer-1", unread_only=False, cursor=None, limit=2
        )
        await service.list_notifications(
            db, "buyer-1", unread_only=False, cursor=first.next_cursor, limit=2
        )

        assert repo.list_for_user.await_args.args[3:5] == (datetime(2026, 5, 4, tzinfo=UTC), "n-1")

    def test_cursor_with_bad_timestamp_is_ignored(self) -> None:
        cursor = base64.b64encode(json.dumps({"ts": "x", "id": "1"}).encode()).decode()
        assert cursor_decode(cursor) == (None, None)
