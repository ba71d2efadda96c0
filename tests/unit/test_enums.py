"""Tests for cm_common.enums — values must match the DB CHECK constraints."""

from src.cm_common.enums import (
    CancelledBy,
    ListingStatus,
    ListingType,
    NotificationType,
    OfferStatus,
    TransactionStatus,
)


class TestEnumValues:
    def test_enums_are_str(self) -> None:
        assert isinstance(ListingStatus.IN_TRANSACTION, str)
        assert ListingStatus.IN_TRANSACTION == "in_transaction"

    def test_listing_type_values(self) -> None:
        assert {t.value for t in ListingType} == {"sale", "auction", "razz"}

    def test_listing_status_values(self) -> None:
        assert {s.value for s in ListingStatus} == {"active", "in_transaction", "sold", "expired"}

    def test_offer_status_values(self) -> None:
        assert {s.value for s in OfferStatus} == {"pending", "chosen", "rejected", "accepted"}

    def test_transaction_status_values(self) -> None:
        assert {s.value for s in TransactionStatus} == {
            "active",
            "completed",
            "cancelled",
            "auto_cancelled",
        }

    def test_cancelled_by_values(self) -> None:
        assert {c.value for c in CancelledBy} == {"seller", "buyer", "system"}

    def test_notification_type_values(self) -> None:
        assert {n.value for n in NotificationType} == {
            "offer_received",
            "offer_accepted",
            "offer_rejected",
            "card_sold",
            "transaction_expired",
        }
