"""Domain model for cm_reputation — the buyer "legit rate" and its counters."""

from dataclasses import dataclass
from datetime import date

MAX_LEGIT_RATE = 100
MIN_LEGIT_RATE = 0


@dataclass(frozen=True)
class Reputation:
    user_id: str
    legit_rate: int = MAX_LEGIT_RATE
    total_transactions: int = 0
    completed_transactions: int = 0
    cancelled_transactions: int = 0
    daily_cancellations: int = 0
    last_cancellation_date: date | None = None
