"""Pydantic schemas for cm_offer API."""

from pydantic import BaseModel, Field

from src.cm_common.cents import cents_to_display
from src.cm_offer.domain.models import Offer


class SubmitOfferRequest(BaseModel):
    price_cents: int = Field(..., gt=0, description="Offer price in cents")
    message: str | None = Field(None, max_length=1000)


class OfferResponse(BaseModel):
    id: str
    card_id: str
    buyer_id: str
    price_cents: int
    price_display: str
    message: str | None
    status: str
    transaction_id: str | None
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, offer: Offer) -> "OfferResponse":
        return cls(
            id=offer.id,
            card_id=offer.card_id,
            buyer_id=offer.buyer_id,
            price_cents=offer.price,
            price_display=cents_to_display(offer.price),
            message=offer.message,
            status=offer.status,
            transaction_id=offer.transaction_id,
            created_at=offer.created_at.isoformat() if offer.created_at else None,
            updated_at=offer.updated_at.isoformat() if offer.updated_at else None,
        )


class OfferListResponse(BaseModel):
    items: list[OfferResponse]
