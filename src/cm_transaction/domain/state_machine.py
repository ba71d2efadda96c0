"""Transaction status state machine.

    active ──complete──▶ completed
       ├────cancel────▶ cancelled
       └────expire────▶ auto_cancelled

Terminal states have no outgoing transitions.
"""

from src.cm_common.enums import TransactionStatus
from src.cm_common.errors import IllegalTransactionTransitionError

TRANSACTION_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.ACTIVE: frozenset(
        {
            TransactionStatus.COMPLETED,
            TransactionStatus.CANCELLED,
            TransactionStatus.AUTO_CANCELLED,
        }
    ),
    TransactionStatus.COMPLETED: frozenset(),
    TransactionStatus.CANCELLED: frozenset(),
    TransactionStatus.AUTO_CANCELLED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return TransactionStatus(target) in TRANSACTION_TRANSITIONS[TransactionStatus(current)]


def ensure_transition(current: str, target: str) -> TransactionStatus:
    if not can_transition(current, target):
        raise IllegalTransactionTransitionError(current, target)
    return TransactionStatus(target)
