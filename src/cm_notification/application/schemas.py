"""Pydantic schemas for cm_notification API."""

import base64
import json
from datetime import datetime

from pydantic import BaseModel

from src.cm_notification.domain.models import Notification


def cursor_encode(last: Notification) -> str:
    payload = {
        "ts": last.created_at.isoformat() if last.created_at else None,
        "id": last.id,
    }
    return base64.b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[datetime | None, str | None]:
    if cursor is None:
        return None, None
    try:
        data = json.loads(base64.b64decode(cursor.encode()).decode())
        # asyncpg binds TIMESTAMPTZ parameters from datetime, not ISO strings.
        return datetime.fromisoformat(data["ts"]), str(data["id"])
    except Exception:
        return None, None


class NotificationResponse(BaseModel):
    id: str
    type: str
    title: str
    message: str
    card_id: str | None
    offer_id: str | None
    transaction_id: str | None
    read: bool
    created_at: str | None

    @classmethod
    def from_domain(cls, n: Notification) -> "NotificationResponse":
        return cls(
            id=n.id,
            type=n.type,
            title=n.title,
            message=n.message,
            card_id=n.card_id,
            offer_id=n.offer_id,
            transaction_id=n.transaction_id,
            read=n.read,
            created_at=n.created_at.isoformat() if n.created_at else None,
        )


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    next_cursor: str | None
    has_more: bool


class UnreadCountResponse(BaseModel):
    unread: int


class MarkAllReadResponse(BaseModel):
    updated: int
