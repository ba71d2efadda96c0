"""Pydantic schemas for cm_transaction API.

History cursor: {"ts": "<created_at ISO>", "id": "<transaction_id>"} as Base64 JSON.
"""

import base64
import json
from datetime import datetime

from pydantic import BaseModel, Field

from src.cm_common.cents import cents_to_display
from src.cm_transaction.domain.models import Cancellation, Transaction


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def cursor_encode(last: Transaction) -> str:
    payload = {"ts": _iso(last.created_at), "id": last.id}
    return base64.b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[datetime | None, str | None]:
    """Decode cursor -> (created_at, transaction_id), or (None, None) on error."""
    if cursor is None:
        return None, None
    try:
        data = json.loads(base64.b64decode(cursor.encode()).decode())
        return datetime.fromisoformat(data["ts"]), str(data["id"])
    except Exception:
        return None, None


class CancelTransactionRequest(BaseModel):
    reason: str = Field(..., max_length=1000)


class TransactionResponse(BaseModel):
    id: str
    card_id: str
    seller_id: str
    buyer_id: str
    offer_id: str
    price_cents: int
    price_display: str
    status: str
    expires_at: str
    seconds_remaining: int
    cancelled_by: str | None
    cancellation_reason: str | None
    completed_at: str | None
    cancelled_at: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, tx: Transaction, now: datetime) -> "TransactionResponse":
        return cls(
            id=tx.id,
            card_id=tx.card_id,
            seller_id=tx.seller_id,
            buyer_id=tx.buyer_id,
            offer_id=tx.offer_id,
            price_cents=tx.price,
            price_display=cents_to_display(tx.price),
            status=tx.status,
            expires_at=tx.expires_at.isoformat(),
            seconds_remaining=tx.seconds_remaining(now),
            cancelled_by=tx.cancelled_by,
            cancellation_reason=tx.cancellation_reason,
            completed_at=_iso(tx.completed_at),
            cancelled_at=_iso(tx.cancelled_at),
            created_at=_iso(tx.created_at),
        )


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]
    next_cursor: str | None
    has_more: bool


class ActiveTransactionResponse(BaseModel):
    """The caller's open transaction room, if any."""

    transaction: TransactionResponse | None


class CancellationResponse(BaseModel):
    id: str
    transaction_id: str
    user_id: str
    reason: str
    created_at: str | None

    @classmethod
    def from_domain(cls, c: Cancellation) -> "CancellationResponse":
        return cls(
            id=c.id,
            transaction_id=c.transaction_id,
            user_id=c.user_id,
            reason=c.reason,
            created_at=_iso(c.created_at),
        )


class CancellationListResponse(BaseModel):
    items: list[CancellationResponse]
