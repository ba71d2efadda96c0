"""Domain model for cm_notification — pure dataclass, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Notification:
    id: str
    user_id: str
    type: str  # NotificationType value
    title: str
    message: str
    card_id: str | None = None
    offer_id: str | None = None
    transaction_id: str | None = None
    read: bool = False
    created_at: datetime | None = None
