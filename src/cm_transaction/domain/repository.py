"""Repository Protocol for transactions and their cancellation audit rows.

complete(), cancel() and auto_expire() are conditional on status='active'
plus the deadline, so each terminal transition (and the reputation effect
that rides on it) is applied at most once.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_transaction.domain.models import Cancellation, Transaction


class TransactionRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, tx: Transaction) -> Transaction: ...

    async def get_by_id(self, db: AsyncSession, transaction_id: str) -> Transaction | None: ...

    async def list_active_for_user(self, db: AsyncSession, user_id: str) -> list[Transaction]: ...

    async def get_active_for_card(self, db: AsyncSession, card_id: str) -> Transaction | None: ...

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        role: str | None,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Transaction]:
        """Every status, newest first. role None means either side."""
        ...

    async def list_overdue_ids(
        self, db: AsyncSession, now: datetime, limit: int
    ) -> list[str]: ...

    async def complete(
        self, db: AsyncSession, transaction_id: str, now: datetime
    ) -> Transaction | None:
        """active and now < expires_at → completed."""
        ...

    async def cancel(
        self,
        db: AsyncSession,
        transaction_id: str,
        cancelled_by: str,
        reason: str,
        now: datetime,
    ) -> Transaction | None:
        """active and now < expires_at → cancelled."""
        ...

    async def auto_expire(
        self, db: AsyncSession, transaction_id: str, now: datetime
    ) -> Transaction | None:
        """active and now >= expires_at → auto_cancelled."""
        ...

    async def add_cancellation(
        self, db: AsyncSession, cancellation: Cancellation
    ) -> Cancellation: ...

    async def list_cancellations(
        self, db: AsyncSession, transaction_id: str
    ) -> list[Cancellation]: ...
