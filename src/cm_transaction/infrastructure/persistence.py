"""TransactionRepository — raw SQL against transactions and cancellations.

Every terminal transition is a single conditional UPDATE ... RETURNING whose
WHERE clause carries status='active' and the deadline check. 0 rows means
another session already moved the row (or the deadline decided otherwise).
The partial unique index uq_transactions_card_active backs the per-card
mutex at the storage layer.

Transaction ownership: the CALLER commits or rolls back.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.errors import InternalError
from src.cm_transaction.domain.models import Cancellation, Transaction

_COLUMNS = """
    id, card_id, seller_id, buyer_id, offer_id, price, status,
    expires_at, cancelled_by, cancellation_reason,
    completed_at, cancelled_at, created_at, updated_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO transactions (id, card_id, seller_id, buyer_id, offer_id,
                              price, status, expires_at, created_at, updated_at)
    VALUES (:id, :card_id, :seller_id, :buyer_id, :offer_id,
            :price, 'active', :expires_at, :now, :now)
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM transactions WHERE id = :transaction_id")

_LIST_ACTIVE_FOR_USER_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM transactions
    WHERE status = 'active'
      AND (seller_id = :user_id OR buyer_id = :user_id)
    ORDER BY created_at DESC, id DESC
""")

_GET_ACTIVE_FOR_CARD_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM transactions
    WHERE card_id = :card_id
      AND status = 'active'
""")

_LIST_FOR_USER_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM transactions
    WHERE (
          (CAST(:role AS TEXT) IS NULL AND (seller_id = :user_id OR buyer_id = :user_id))
          OR (CAST(:role AS TEXT) = 'seller' AND seller_id = :user_id)
          OR (CAST(:role AS TEXT) = 'buyer' AND buyer_id = :user_id)
      )
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

_LIST_OVERDUE_SQL = text("""
    SELECT id
    FROM transactions
    WHERE status = 'active'
      AND expires_at <= :now
    ORDER BY expires_at ASC
    LIMIT :limit
""")

_COMPLETE_SQL = text(f"""
    UPDATE transactions
    SET status = 'completed',
        completed_at = :now,
        updated_at = :now
    WHERE id = :transaction_id
      AND status = 'active'
      AND expires_at > :now
    RETURNING {_COLUMNS}
""")

_CANCEL_SQL = text(f"""
    UPDATE transactions
    SET status = 'cancelled',
        cancelled_by = :cancelled_by,
        cancellation_reason = :reason,
        cancelled_at = :now,
        updated_at = :now
    WHERE id = :transaction_id
      AND status = 'active'
      AND expires_at > :now
    RETURNING {_COLUMNS}
""")

_AUTO_EXPIRE_SQL = text(f"""
    UPDATE transactions
    SET status = 'auto_cancelled',
        cancelled_by = 'system',
        cancelled_at = :now,
        updated_at = :now
    WHERE id = :transaction_id
      AND status = 'active'
      AND expires_at <= :now
    RETURNING {_COLUMNS}
""")

_INSERT_CANCELLATION_SQL = text("""
    INSERT INTO cancellations (id, transaction_id, user_id, reason)
    VALUES (:id, :transaction_id, :user_id, :reason)
    RETURNING id, transaction_id, user_id, reason, created_at
""")

_LIST_CANCELLATIONS_SQL = text("""
    SELECT id, transaction_id, user_id, reason, created_at
    FROM cancellations
    WHERE transaction_id = :transaction_id
    ORDER BY created_at ASC, id ASC
""")


def _row_to_transaction(row: Any) -> Transaction:
    return Transaction(
        id=row.id,
        card_id=row.card_id,
        seller_id=row.seller_id,
        buyer_id=row.buyer_id,
        offer_id=row.offer_id,
        price=row.price,
        status=row.status,
        expires_at=row.expires_at,
        cancelled_by=row.cancelled_by,
        cancellation_reason=row.cancellation_reason,
        completed_at=row.completed_at,
        cancelled_at=row.cancelled_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_cancellation(row: Any) -> Cancellation:
    return Cancellation(
        id=row.id,
        transaction_id=row.transaction_id,
        user_id=row.user_id,
        reason=row.reason,
        created_at=row.created_at,
    )


class TransactionRepository:
    async def create(self, db: AsyncSession, tx: Transaction) -> Transaction:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": tx.id,
                "card_id": tx.card_id,
                "seller_id": tx.seller_id,
                "buyer_id": tx.buyer_id,
                "offer_id": tx.offer_id,
                "price": tx.price,
                "expires_at": tx.expires_at,
                "now": tx.created_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Transaction insert returned no rows")
        return _row_to_transaction(row)

    async def get_by_id(self, db: AsyncSession, transaction_id: str) -> Transaction | None:
        result = await db.execute(_GET_SQL, {"transaction_id": transaction_id})
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def list_active_for_user(self, db: AsyncSession, user_id: str) -> list[Transaction]:
        result = await db.execute(_LIST_ACTIVE_FOR_USER_SQL, {"user_id": user_id})
        return [_row_to_transaction(row) for row in result.fetchall()]

    async def get_active_for_card(self, db: AsyncSession, card_id: str) -> Transaction | None:
        result = await db.execute(_GET_ACTIVE_FOR_CARD_SQL, {"card_id": card_id})
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        role: str | None,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Transaction]:
        result = await db.execute(
            _LIST_FOR_USER_SQL,
            {
                "user_id": user_id,
                "role": role,
                "cursor_ts": cursor_ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_transaction(row) for row in result.fetchall()]

    async def list_overdue_ids(self, db: AsyncSession, now: datetime, limit: int) -> list[str]:
        result = await db.execute(_LIST_OVERDUE_SQL, {"now": now, "limit": limit})
        return [row.id for row in result.fetchall()]

    async def complete(
        self, db: AsyncSession, transaction_id: str, now: datetime
    ) -> Transaction | None:
        result = await db.execute(
            _COMPLETE_SQL, {"transaction_id": transaction_id, "now": now}
        )
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def cancel(
        self,
        db: AsyncSession,
        transaction_id: str,
        cancelled_by: str,
        reason: str,
        now: datetime,
    ) -> Transaction | None:
        result = await db.execute(
            _CANCEL_SQL,
            {
                "transaction_id": transaction_id,
                "cancelled_by": cancelled_by,
                "reason": reason,
                "now": now,
            },
        )
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def auto_expire(
        self, db: AsyncSession, transaction_id: str, now: datetime
    ) -> Transaction | None:
        result = await db.execute(
            _AUTO_EXPIRE_SQL, {"transaction_id": transaction_id, "now": now}
        )
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def add_cancellation(
        self, db: AsyncSession, cancellation: Cancellation
    ) -> Cancellation:
        result = await db.execute(
            _INSERT_CANCELLATION_SQL,
            {
                "id": cancellation.id,
                "transaction_id": cancellation.transaction_id,
                "user_id": cancellation.user_id,
                "reason": cancellation.reason,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Cancellation insert returned no rows")
        return _row_to_cancellation(row)

    async def list_cancellations(
        self, db: AsyncSession, transaction_id: str
    ) -> list[Cancellation]:
        result = await db.execute(
            _LIST_CANCELLATIONS_SQL, {"transaction_id": transaction_id}
        )
        return [_row_to_cancellation(row) for row in result.fetchall()]
