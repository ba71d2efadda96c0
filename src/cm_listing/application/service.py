"""ListingApplicationService — create and read listings.

Status changes driven by the escrow workflow (lock / sold / release) are
called directly on the repository by cm_transaction inside its own
database transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.enums import ListingStatus
from src.cm_common.errors import ListingNotFoundError
from src.cm_common.id_generator import generate_id
from src.cm_listing.application.schemas import (
    CreateListingRequest,
    ListingListResponse,
    ListingResponse,
    cursor_decode,
    cursor_encode,
)
from src.cm_listing.domain.models import Listing
from src.cm_listing.domain.repository import ListingRepositoryProtocol
from src.cm_listing.infrastructure.persistence import ListingRepository

logger = logging.getLogger(__name__)


class ListingApplicationService:
    def __init__(self, repo: ListingRepositoryProtocol | None = None) -> None:
        self._repo: ListingRepositoryProtocol = repo or ListingRepository()

    async def create_listing(
        self, db: AsyncSession, seller_id: str, req: CreateListingRequest
    ) -> ListingResponse:
        listing = Listing(
            id=generate_id(),
            seller_id=seller_id,
            name=req.name,
            category=req.category,
            listing_type=req.listing_type.value,
            status=ListingStatus.ACTIVE.value,
            price=req.price_cents,
            current_bid=req.current_bid_cents,
            ticket_price=req.ticket_price_cents,
            condition=req.condition,
            description=req.description,
            image_url=req.image_url,
        )
        try:
            created = await self._repo.create(db, listing)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Listing %s created by seller %s", created.id, seller_id)
        return ListingResponse.from_domain(created)

    async def get_listing(self, db: AsyncSession, card_id: str) -> ListingResponse:
        listing = await self._repo.get_by_id(db, card_id)
        if listing is None:
            raise ListingNotFoundError(card_id)
        return ListingResponse.from_domain(listing)

    async def list_listings(
        self,
        db: AsyncSession,
        status: str | None,
        seller_id: str | None,
        cursor: str | None,
        limit: int,
    ) -> ListingListResponse:
        # status=None → default active; status='all' → no filter
        sql_status = None if status == "all" else (status or ListingStatus.ACTIVE.value)
        cursor_ts, cursor_id = cursor_decode(cursor)

        # Fetch limit+1 to detect has_more without COUNT(*)
        listings = await self._repo.list_listings(
            db, sql_status, seller_id, cursor_ts, cursor_id, limit + 1
        )
        has_more = len(listings) > limit
        page = listings[:limit]
        next_cursor = cursor_encode(page[-1]) if has_more and page else None
        return ListingListResponse(
            items=[ListingResponse.from_domain(item) for item in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
