"""Repository Protocol for notifications."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_notification.domain.models import Notification


class NotificationRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, notification: Notification) -> Notification: ...

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        unread_only: bool,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Notification]: ...

    async def mark_read(
        self, db: AsyncSession, notification_id: str, user_id: str
    ) -> Notification | None: ...

    async def mark_all_read(self, db: AsyncSession, user_id: str) -> int: ...

    async def count_unread(self, db: AsyncSession, user_id: str) -> int: ...
