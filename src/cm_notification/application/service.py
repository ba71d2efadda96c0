"""NotificationApplicationService — the bell: list, mark read, unread count."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.errors import NotificationNotFoundError
from src.cm_notification.application.schemas import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
    cursor_decode,
    cursor_encode,
)
from src.cm_notification.domain.repository import NotificationRepositoryProtocol
from src.cm_notification.infrastructure.persistence import NotificationRepository


class NotificationApplicationService:
    def __init__(self, repo: NotificationRepositoryProtocol | None = None) -> None:
        self._repo: NotificationRepositoryProtocol = repo or NotificationRepository()

    async def list_notifications(
        self,
        db: AsyncSession,
        user_id: str,
        unread_only: bool,
        cursor: str | None,
        limit: int,
    ) -> NotificationListResponse:
        cursor_ts, cursor_id = cursor_decode(cursor)
        rows = await self._repo.list_for_user(
            db, user_id, unread_only, cursor_ts, cursor_id, limit + 1
        )
        has_more = len(rows) > limit
        page = rows[:limit]
        return NotificationListResponse(
            items=[NotificationResponse.from_domain(n) for n in page],
            next_cursor=cursor_encode(page[-1]) if has_more and page else None,
            has_more=has_more,
        )

    async def mark_read(
        self, db: AsyncSession, user_id: str, notification_id: str
    ) -> NotificationResponse:
        try:
            notification = await self._repo.mark_read(db, notification_id, user_id)
            if notification is None:
                raise NotificationNotFoundError(notification_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return NotificationResponse.from_domain(notification)

    async def mark_all_read(self, db: AsyncSession, user_id: str) -> MarkAllReadResponse:
        try:
            updated = await self._repo.mark_all_read(db, user_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return MarkAllReadResponse(updated=updated)

    async def unread_count(self, db: AsyncSession, user_id: str) -> UnreadCountResponse:
        return UnreadCountResponse(unread=await self._repo.count_unread(db, user_id))
