"""NotificationRepository — raw SQL against the notifications table.

Rows are append-only apart from the read flag.
Transaction ownership: the CALLER commits or rolls back.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.errors import InternalError
from src.cm_notification.domain.models import Notification

_COLUMNS = """
    id, user_id, type, title, message,
    card_id, offer_id, transaction_id, read, created_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO notifications (id, user_id, type, title, message,
                               card_id, offer_id, transaction_id)
    VALUES (:id, :user_id, :type, :title, :message,
            :card_id, :offer_id, :transaction_id)
    RETURNING {_COLUMNS}
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM notifications
    WHERE user_id = :user_id
      AND (:unread_only = FALSE OR read = FALSE)
      AND (
          CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
          OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
          OR (
              created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
              AND id < CAST(:cursor_id AS TEXT)
          )
      )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_MARK_READ_SQL = text(f"""
    UPDATE notifications
    SET read = TRUE
    WHERE id = :notification_id
      AND user_id = :user_id
    RETURNING {_COLUMNS}
""")

_MARK_ALL_READ_SQL = text("""
    UPDATE notifications
    SET read = TRUE
    WHERE user_id = :user_id
      AND read = FALSE
""")

_COUNT_UNREAD_SQL = text("""
    SELECT COUNT(*) AS n
    FROM notifications
    WHERE user_id = :user_id
      AND read = FALSE
""")


def _row_to_notification(row: Any) -> Notification:
    return Notification(
        id=row.id,
        user_id=row.user_id,
        type=row.type,
        title=row.title,
        message=row.message,
        card_id=row.card_id,
        offer_id=row.offer_id,
        transaction_id=row.transaction_id,
        read=row.read,
        created_at=row.created_at,
    )


class NotificationRepository:
    async def create(self, db: AsyncSession, notification: Notification) -> Notification:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": notification.id,
                "user_id": notification.user_id,
                "type": notification.type,
                "title": notification.title,
                "message": notification.message,
                "card_id": notification.card_id,
                "offer_id": notification.offer_id,
                "transaction_id": notification.transaction_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Notification insert returned no rows")
        return _row_to_notification(row)

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        unread_only: bool,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Notification]:
        result = await db.execute(
            _LIST_SQL,
            {
                "user_id": user_id,
                "unread_only": unread_only,
                "cursor_ts": cursor_ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_notification(row) for row in result.fetchall()]

    async def mark_read(
        self, db: AsyncSession, notification_id: str, user_id: str
    ) -> Notification | None:
        result = await db.execute(
            _MARK_READ_SQL, {"notification_id": notification_id, "user_id": user_id}
        )
        row = result.fetchone()
        return _row_to_notification(row) if row else None

    async def mark_all_read(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(_MARK_ALL_READ_SQL, {"user_id": user_id})
        return result.rowcount

    async def count_unread(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(_COUNT_UNREAD_SQL, {"user_id": user_id})
        return int(result.scalar_one())
