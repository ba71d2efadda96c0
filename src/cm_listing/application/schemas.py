"""Pydantic schemas for cm_listing API.

Cursor format (VARCHAR PK, paged newest first):
  {"ts": "<created_at ISO>", "id": "<card_id>"} encoded as Base64 JSON.
"""

import base64
import json
from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from src.cm_common.cents import cents_to_display
from src.cm_common.enums import ListingType
from src.cm_listing.domain.models import Listing

# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(last: Listing) -> str:
    payload = {
        "ts": last.created_at.isoformat() if last.created_at else None,
        "id": last.id,
    }
    return base64.b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[datetime | None, str | None]:
    """Decode cursor -> (created_at, card_id), or (None, None) on error."""
    if cursor is None:
        return None, None
    try:
        data = json.loads(base64.b64decode(cursor.encode()).decode())
        return datetime.fromisoformat(data["ts"]), str(data["id"])
    except Exception:
        return None, None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateListingRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=64)
    listing_type: ListingType
    price_cents: int | None = Field(None, gt=0)
    current_bid_cents: int | None = Field(None, gt=0)
    ticket_price_cents: int | None = Field(None, gt=0)
    condition: str | None = Field(None, max_length=64)
    description: str | None = Field(None, max_length=5000)
    image_url: str | None = Field(None, max_length=2048)

    @model_validator(mode="after")
    def price_matches_type(self) -> "CreateListingRequest":
        required = {
            ListingType.SALE: ("price_cents", self.price_cents),
            ListingType.AUCTION: ("current_bid_cents", self.current_bid_cents),
            ListingType.RAZZ: ("ticket_price_cents", self.ticket_price_cents),
        }
        field_name, value = required[self.listing_type]
        if value is None:
            raise ValueError(f"{field_name} is required for {self.listing_type.value} listings")
        return self


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ListingResponse(BaseModel):
    id: str
    seller_id: str
    name: str
    category: str
    listing_type: str
    status: str
    price_cents: int | None
    current_bid_cents: int | None
    ticket_price_cents: int | None
    asking_price_display: str | None
    last_sold_price_cents: int | None
    condition: str | None
    description: str | None
    image_url: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, listing: Listing) -> "ListingResponse":
        asking = listing.asking_price
        return cls(
            id=listing.id,
            seller_id=listing.seller_id,
            name=listing.name,
            category=listing.category,
            listing_type=listing.listing_type,
            status=listing.status,
            price_cents=listing.price,
            current_bid_cents=listing.current_bid,
            ticket_price_cents=listing.ticket_price,
            asking_price_display=cents_to_display(asking) if asking is not None else None,
            last_sold_price_cents=listing.last_sold_price,
            condition=listing.condition,
            description=listing.description,
            image_url=listing.image_url,
            created_at=listing.created_at.isoformat() if listing.created_at else None,
        )


class ListingListResponse(BaseModel):
    items: list[ListingResponse]
    next_cursor: str | None
    has_more: bool
