"""Notifier — best-effort writer used by the offer and transaction workflows.

Each insert runs in a SAVEPOINT inside the caller's transaction. A failed
insert rolls back to the savepoint and is logged; the caller's state
changes still commit.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.enums import NotificationType
from src.cm_common.id_generator import generate_id
from src.cm_notification.domain.models import Notification
from src.cm_notification.domain.repository import NotificationRepositoryProtocol
from src.cm_notification.infrastructure.persistence import NotificationRepository

logger = logging.getLogger(__name__)


class Notifier:
    def __init__(self, repo: NotificationRepositoryProtocol | None = None) -> None:
        self._repo: NotificationRepositoryProtocol = repo or NotificationRepository()

    async def notify(
        self,
        db: AsyncSession,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        card_id: str | None = None,
        offer_id: str | None = None,
        transaction_id: str | None = None,
    ) -> Notification | None:
        """Append a notification. Returns None if the write failed."""
        notification = Notification(
            id=generate_id(),
            user_id=user_id,
            type=notification_type.value,
            title=title,
            message=message,
            card_id=card_id,
            offer_id=offer_id,
            transaction_id=transaction_id,
        )
        try:
            async with db.begin_nested():
                return await self._repo.create(db, notification)
        except SQLAlchemyError:
            logger.exception(
                "Failed to write %s notification for user %s",
                notification.type,
                user_id,
            )
            return None
