"""Repository Protocol for offers.

choose() and reject() are conditional on status='pending' and return None
when another session already moved the offer.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_offer.domain.models import Offer


class OfferRepositoryProtocol(Protocol):
    async def upsert_pending(self, db: AsyncSession, offer: Offer) -> tuple[Offer, bool]:
        """Insert, or reprice the buyer's pending offer. Returns (offer, inserted)."""
        ...

    async def get_by_id(self, db: AsyncSession, offer_id: str) -> Offer | None: ...

    async def list_by_card(self, db: AsyncSession, card_id: str) -> list[Offer]: ...

    async def choose(
        self, db: AsyncSession, offer_id: str, transaction_id: str
    ) -> Offer | None: ...

    async def reject(self, db: AsyncSession, offer_id: str) -> Offer | None: ...
