"""Repository Protocol — dependency inversion for testability.

The status-changing methods are conditional: they return None when the
row was not in the expected source status (another session got there
first), and the caller maps that to a domain error.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_listing.domain.models import Listing


class ListingRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, listing: Listing) -> Listing: ...

    async def get_by_id(self, db: AsyncSession, card_id: str) -> Listing | None: ...

    async def list_listings(
        self,
        db: AsyncSession,
        status: str | None,
        seller_id: str | None,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Listing]: ...

    async def lock_for_transaction(
        self, db: AsyncSession, card_id: str, seller_id: str
    ) -> Listing | None: ...

    async def mark_sold(
        self, db: AsyncSession, card_id: str, sold_price: int
    ) -> Listing | None: ...

    async def release(self, db: AsyncSession, card_id: str) -> Listing | None: ...
