"""OfferRepository — raw SQL against the offers table.

A buyer holds at most one pending offer per card, backed by the partial
unique index uq_offers_card_buyer_pending. Resubmitting reprices that row
in place; (xmax = 0) tells a fresh insert from an ON CONFLICT update.

Transaction ownership: the CALLER commits or rolls back.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.errors import InternalError
from src.cm_offer.domain.models import Offer

_COLUMNS = """
    id, card_id, buyer_id, price, message, status,
    transaction_id, created_at, updated_at
"""

_UPSERT_SQL = text(f"""
    INSERT INTO offers (id, card_id, buyer_id, price, message, status)
    VALUES (:id, :card_id, :buyer_id, :price, :message, 'pending')
    ON CONFLICT (card_id, buyer_id) WHERE status = 'pending'
    DO UPDATE SET price      = EXCLUDED.price,
                  message    = EXCLUDED.message,
                  updated_at = NOW()
    RETURNING {_COLUMNS}, (xmax = 0) AS inserted
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM offers WHERE id = :offer_id")

_LIST_BY_CARD_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM offers
    WHERE card_id = :card_id
    ORDER BY price DESC, created_at ASC
""")

_CHOOSE_SQL = text(f"""
    UPDATE offers
    SET status = 'chosen',
        transaction_id = :transaction_id,
        updated_at = NOW()
    WHERE id = :offer_id
      AND status = 'pending'
    RETURNING {_COLUMNS}
""")

_REJECT_SQL = text(f"""
    UPDATE offers
    SET status = 'rejected',
        updated_at = NOW()
    WHERE id = :offer_id
      AND status = 'pending'
    RETURNING {_COLUMNS}
""")


def _row_to_offer(row: Any) -> Offer:
    return Offer(
        id=row.id,
        card_id=row.card_id,
        buyer_id=row.buyer_id,
        price=row.price,
        message=row.message,
        status=row.status,
        transaction_id=row.transaction_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class OfferRepository:
    async def upsert_pending(self, db: AsyncSession, offer: Offer) -> tuple[Offer, bool]:
        result = await db.execute(
            _UPSERT_SQL,
            {
                "id": offer.id,
                "card_id": offer.card_id,
                "buyer_id": offer.buyer_id,
                "price": offer.price,
                "message": offer.message,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Offer upsert returned no rows")
        return _row_to_offer(row), bool(row.inserted)

    async def get_by_id(self, db: AsyncSession, offer_id: str) -> Offer | None:
        result = await db.execute(_GET_SQL, {"offer_id": offer_id})
        row = result.fetchone()
        return _row_to_offer(row) if row else None

    async def list_by_card(self, db: AsyncSession, card_id: str) -> list[Offer]:
        result = await db.execute(_LIST_BY_CARD_SQL, {"card_id": card_id})
        return [_row_to_offer(row) for row in result.fetchall()]

    async def choose(
        self, db: AsyncSession, offer_id: str, transaction_id: str
    ) -> Offer | None:
        result = await db.execute(
            _CHOOSE_SQL, {"offer_id": offer_id, "transaction_id": transaction_id}
        )
        row = result.fetchone()
        return _row_to_offer(row) if row else None

    async def reject(self, db: AsyncSession, offer_id: str) -> Offer | None:
        result = await db.execute(_REJECT_SQL, {"offer_id": offer_id})
        row = result.fetchone()
        return _row_to_offer(row) if row else None
