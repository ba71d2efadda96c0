"""Pydantic schemas for cm_reputation API."""

from pydantic import BaseModel

from src.cm_reputation.domain.models import Reputation


class ReputationResponse(BaseModel):
    user_id: str
    legit_rate: int
    total_transactions: int
    completed_transactions: int
    cancelled_transactions: int
    daily_cancellations: int
    last_cancellation_date: str | None

    @classmethod
    def from_domain(cls, rep: Reputation) -> "ReputationResponse":
        return cls(
            user_id=rep.user_id,
            legit_rate=rep.legit_rate,
            total_transactions=rep.total_transactions,
            completed_transactions=rep.completed_transactions,
            cancelled_transactions=rep.cancelled_transactions,
            daily_cancellations=rep.daily_cancellations,
            last_cancellation_date=(
                rep.last_cancellation_date.isoformat() if rep.last_cancellation_date else None
            ),
        )
