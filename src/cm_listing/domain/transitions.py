"""Listing status transition table.

    active ──accept offer──▶ in_transaction ──complete──▶ sold
       │                           │
       │                           └──cancel / expire──▶ active
       └──────────────────────────────────────────────▶ expired

`sold` and `expired` are terminal. `in_transaction` is the per-listing
mutex: at most one active escrow transaction exists while it is set.
"""

from src.cm_common.enums import ListingStatus

LISTING_TRANSITIONS: dict[ListingStatus, frozenset[ListingStatus]] = {
    ListingStatus.ACTIVE: frozenset({ListingStatus.IN_TRANSACTION, ListingStatus.EXPIRED}),
    ListingStatus.IN_TRANSACTION: frozenset({ListingStatus.SOLD, ListingStatus.ACTIVE}),
    ListingStatus.SOLD: frozenset(),
    ListingStatus.EXPIRED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return ListingStatus(target) in LISTING_TRANSITIONS[ListingStatus(current)]
