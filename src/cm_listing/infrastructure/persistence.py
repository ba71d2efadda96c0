"""ListingRepository — concrete implementation of ListingRepositoryProtocol.

All queries use raw text() SQL (no ORM).
Status changes are single conditional UPDATE ... RETURNING statements; the
WHERE clause carries the source status, so two sessions racing for the
same card cannot both succeed. 0 rows means the guard failed.

Transaction ownership: the CALLER commits or rolls back.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.errors import InternalError
from src.cm_listing.domain.models import Listing

_COLUMNS = """
    id, seller_id, name, category, listing_type, status,
    price, current_bid, ticket_price, last_sold_price,
    condition, description, image_url, created_at, updated_at
"""

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_INSERT_SQL = text(f"""
    INSERT INTO cards (id, seller_id, name, category, listing_type, status,
                       price, current_bid, ticket_price,
                       condition, description, image_url)
    VALUES (:id, :seller_id, :name, :category, :listing_type, 'active',
            :price, :current_bid, :ticket_price,
            :condition, :description, :image_url)
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM cards
    WHERE id = :card_id
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM cards
    WHERE
        (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
        AND (CAST(:seller_id AS TEXT) IS NULL OR seller_id = CAST(:seller_id AS TEXT))
        AND (
            CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
            OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
            OR (
                created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
                AND id < CAST(:cursor_id AS TEXT)
            )
        )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

# The mutex: only an active sale listing owned by the seller can be locked.
_LOCK_FOR_TRANSACTION_SQL = text(f"""
    UPDATE cards
    SET status = 'in_transaction',
        updated_at = NOW()
    WHERE id = :card_id
      AND seller_id = :seller_id
      AND listing_type = 'sale'
      AND status = 'active'
    RETURNING {_COLUMNS}
""")

_MARK_SOLD_SQL = text(f"""
    UPDATE cards
    SET status = 'sold',
        last_sold_price = :sold_price,
        updated_at = NOW()
    WHERE id = :card_id
      AND status = 'in_transaction'
    RETURNING {_COLUMNS}
""")

_RELEASE_SQL = text(f"""
    UPDATE cards
    SET status = 'active',
        updated_at = NOW()
    WHERE id = :card_id
      AND status = 'in_transaction'
    RETURNING {_COLUMNS}
""")

# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_listing(row: Any) -> Listing:
    return Listing(
        id=row.id,
        seller_id=row.seller_id,
        name=row.name,
        category=row.category,
        listing_type=row.listing_type,
        status=row.status,
        price=row.price,
        current_bid=row.current_bid,
        ticket_price=row.ticket_price,
        last_sold_price=row.last_sold_price,
        condition=row.condition,
        description=row.description,
        image_url=row.image_url,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ListingRepository:
    async def create(self, db: AsyncSession, listing: Listing) -> Listing:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": listing.id,
                "seller_id": listing.seller_id,
                "name": listing.name,
                "category": listing.category,
                "listing_type": listing.listing_type,
                "price": listing.price,
                "current_bid": listing.current_bid,
                "ticket_price": listing.ticket_price,
                "condition": listing.condition,
                "description": listing.description,
                "image_url": listing.image_url,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Listing insert returned no rows")
        return _row_to_listing(row)

    async def get_by_id(self, db: AsyncSession, card_id: str) -> Listing | None:
        result = await db.execute(_GET_SQL, {"card_id": card_id})
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def list_listings(
        self,
        db: AsyncSession,
        status: str | None,
        seller_id: str | None,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Listing]:
        result = await db.execute(
            _LIST_SQL,
            {
                "status": status,
                "seller_id": seller_id,
                "cursor_ts": cursor_ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_listing(row) for row in result.fetchall()]

    async def lock_for_transaction(
        self, db: AsyncSession, card_id: str, seller_id: str
    ) -> Listing | None:
        result = await db.execute(
            _LOCK_FOR_TRANSACTION_SQL, {"card_id": card_id, "seller_id": seller_id}
        )
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def mark_sold(
        self, db: AsyncSession, card_id: str, sold_price: int
    ) -> Listing | None:
        result = await db.execute(
            _MARK_SOLD_SQL, {"card_id": card_id, "sold_price": sold_price}
        )
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def release(self, db: AsyncSession, card_id: str) -> Listing | None:
        result = await db.execute(_RELEASE_SQL, {"card_id": card_id})
        row = result.fetchone()
        return _row_to_listing(row) if row else None
