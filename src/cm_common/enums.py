"""Global enums — must match DB CHECK constraints exactly.

Storage values are lowercase snake_case (shared with the original store).
"""

from enum import Enum


class ListingType(str, Enum):
    SALE = "sale"
    AUCTION = "auction"
    RAZZ = "razz"


class ListingStatus(str, Enum):
    ACTIVE = "active"
    IN_TRANSACTION = "in_transaction"
    SOLD = "sold"
    EXPIRED = "expired"


class OfferStatus(str, Enum):
    PENDING = "pending"
    CHOSEN = "chosen"
    REJECTED = "rejected"
    ACCEPTED = "accepted"


class TransactionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    AUTO_CANCELLED = "auto_cancelled"


class CancelledBy(str, Enum):
    SELLER = "seller"
    BUYER = "buyer"
    SYSTEM = "system"


class NotificationType(str, Enum):
    OFFER_RECEIVED = "offer_received"
    OFFER_ACCEPTED = "offer_accepted"
    OFFER_REJECTED = "offer_rejected"
    CARD_SOLD = "card_sold"
    TRANSACTION_EXPIRED = "transaction_expired"


class ReputationOutcome(str, Enum):
    """Transaction outcomes that move a buyer's legit rate."""
    COMPLETED = "completed"
    CANCELLED_BY_BUYER = "cancelled_by_buyer"
