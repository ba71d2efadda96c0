"""ReputationRepository — reads and writes the reputation columns of profiles.

Transaction ownership: the CALLER commits or rolls back.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.errors import ProfileNotFoundError
from src.cm_reputation.domain.models import Reputation

_COLUMNS = """
    id, legit_rate, total_transactions, completed_transactions,
    cancelled_transactions, daily_cancellations, last_cancellation_date
"""

_GET_SQL = text(f"SELECT {_COLUMNS} FROM profiles WHERE id = :user_id")

# Serializes concurrent outcomes for the same user.
_GET_FOR_UPDATE_SQL = text(f"SELECT {_COLUMNS} FROM profiles WHERE id = :user_id FOR UPDATE")

_UPDATE_SQL = text("""
    UPDATE profiles
    SET legit_rate             = :legit_rate,
        total_transactions     = :total_transactions,
        completed_transactions = :completed_transactions,
        cancelled_transactions = :cancelled_transactions,
        daily_cancellations    = :daily_cancellations,
        last_cancellation_date = :last_cancellation_date,
        updated_at             = NOW()
    WHERE id = :user_id
""")


def _row_to_reputation(row: Any) -> Reputation:
    return Reputation(
        user_id=row.id,
        legit_rate=row.legit_rate,
        total_transactions=row.total_transactions,
        completed_transactions=row.completed_transactions,
        cancelled_transactions=row.cancelled_transactions,
        daily_cancellations=row.daily_cancellations,
        last_cancellation_date=row.last_cancellation_date,
    )


class ReputationRepository:
    async def get(self, db: AsyncSession, user_id: str) -> Reputation | None:
        result = await db.execute(_GET_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_reputation(row) if row else None

    async def get_for_update(self, db: AsyncSession, user_id: str) -> Reputation | None:
        result = await db.execute(_GET_FOR_UPDATE_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_reputation(row) if row else None

    async def save(self, db: AsyncSession, rep: Reputation) -> None:
        result = await db.execute(
            _UPDATE_SQL,
            {
                "user_id": rep.user_id,
                "legit_rate": rep.legit_rate,
                "total_transactions": rep.total_transactions,
                "completed_transactions": rep.completed_transactions,
                "cancelled_transactions": rep.cancelled_transactions,
                "daily_cancellations": rep.daily_cancellations,
                "last_cancellation_date": rep.last_cancellation_date,
            },
        )
        if result.rowcount == 0:
            raise ProfileNotFoundError(rep.user_id)
