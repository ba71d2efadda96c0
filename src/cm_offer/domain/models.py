"""Domain model for cm_offer — pure dataclass, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.cm_common.enums import OfferStatus


@dataclass
class Offer:
    id: str
    card_id: str
    buyer_id: str
    price: int  # cents
    status: str = OfferStatus.PENDING.value
    message: str | None = None
    transaction_id: str | None = None  # set once chosen
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == OfferStatus.PENDING
