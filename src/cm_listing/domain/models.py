"""Domain model for cm_listing — pure dataclass, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.cm_common.enums import ListingStatus, ListingType


@dataclass
class Listing:
    """A sellable card. Which price field matters depends on listing_type."""

    id: str
    seller_id: str
    name: str
    category: str
    listing_type: str  # sale / auction / razz
    status: str  # active / in_transaction / sold / expired
    price: int | None = None  # cents, sale
    current_bid: int | None = None  # cents, auction
    ticket_price: int | None = None  # cents, razz
    last_sold_price: int | None = None
    condition: str | None = None
    description: str | None = None
    image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def accepts_offers(self) -> bool:
        return (
            self.listing_type == ListingType.SALE
            and self.status == ListingStatus.ACTIVE
        )

    @property
    def asking_price(self) -> int | None:
        if self.listing_type == ListingType.AUCTION:
            return self.current_bid
        if self.listing_type == ListingType.RAZZ:
            return self.ticket_price
        return self.price
