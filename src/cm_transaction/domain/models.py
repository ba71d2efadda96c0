"""Domain models for cm_transaction — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.cm_common.enums import CancelledBy, TransactionStatus


@dataclass
class Transaction:
    """Escrow record opened when a seller accepts an offer.

    expires_at is fixed at creation. Once status leaves `active` it never
    returns.
    """

    id: str
    card_id: str
    seller_id: str
    buyer_id: str
    offer_id: str
    price: int  # cents, copied from the chosen offer
    expires_at: datetime
    status: str = TransactionStatus.ACTIVE.value
    cancelled_by: str | None = None  # seller / buyer / system
    cancellation_reason: str | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == TransactionStatus.ACTIVE

    def is_expired(self, now: datetime) -> bool:
        """Still active but past its deadline."""
        return self.is_active and now >= self.expires_at

    def seconds_remaining(self, now: datetime) -> int:
        if not self.is_active:
            return 0
        return max(0, int((self.expires_at - now).total_seconds()))

    def role_of(self, user_id: str) -> CancelledBy | None:
        if user_id == self.seller_id:
            return CancelledBy.SELLER
        if user_id == self.buyer_id:
            return CancelledBy.BUYER
        return None

    def counterparty_of(self, user_id: str) -> str:
        return self.buyer_id if user_id == self.seller_id else self.seller_id


@dataclass
class Cancellation:
    """Audit row appended for every manual cancellation."""

    id: str
    transaction_id: str
    user_id: str  # the cancelling party
    reason: str
    created_at: datetime | None = None
