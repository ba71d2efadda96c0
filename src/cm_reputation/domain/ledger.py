"""Reputation ledger — pure scoring rules.

    Completed         rate + 2, capped at 100
    CancelledByBuyer  rate - 5, and a further - 10 once the buyer has
                      cancelled more than 3 times on the same day; floored at 0

The daily counter resets on the first cancellation of a new calendar day.
No I/O here; persistence lives in the infrastructure layer.
"""

from dataclasses import replace
from datetime import date

from src.cm_common.enums import ReputationOutcome
from src.cm_reputation.domain.models import MAX_LEGIT_RATE, MIN_LEGIT_RATE, Reputation

COMPLETION_BONUS = 2
CANCELLATION_PENALTY = 5
EXCESS_CANCELLATION_PENALTY = 10
DAILY_CANCELLATION_THRESHOLD = 3


def cancellation_penalty(daily_cancellations: int) -> int:
    """Penalty for a cancellation that brings today's count to daily_cancellations."""
    if daily_cancellations > DAILY_CANCELLATION_THRESHOLD:
        return CANCELLATION_PENALTY + EXCESS_CANCELLATION_PENALTY
    return CANCELLATION_PENALTY


def apply_outcome(rep: Reputation, outcome: ReputationOutcome, today: date) -> Reputation:
    if outcome == ReputationOutcome.COMPLETED:
        return replace(
            rep,
            legit_rate=min(MAX_LEGIT_RATE, rep.legit_rate + COMPLETION_BONUS),
            total_transactions=rep.total_transactions + 1,
            completed_transactions=rep.completed_transactions + 1,
        )

    if outcome == ReputationOutcome.CANCELLED_BY_BUYER:
        if rep.last_cancellation_date == today:
            daily = rep.daily_cancellations + 1
        else:
            daily = 1
        return replace(
            rep,
            legit_rate=max(MIN_LEGIT_RATE, rep.legit_rate - cancellation_penalty(daily)),
            total_transactions=rep.total_transactions + 1,
            cancelled_transactions=rep.cancelled_transactions + 1,
            daily_cancellations=daily,
            last_cancellation_date=today,
        )

    raise ValueError(f"Unknown reputation outcome: {outcome}")
