"""ExpirySweeper — periodic AutoExpire for transactions nobody is looking at.

Reads and actions expire overdue transactions lazily; the sweeper covers
the rest so listings do not stay locked in_transaction past the deadline.
Each transaction is expired in its own session and commit. A failure is
logged and the sweep moves on.
"""

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.cm_common.database import async_session_factory
from src.cm_transaction.application.service import TransactionWorkflowService

logger = logging.getLogger(__name__)


class ExpirySweeper:
    def __init__(
        self,
        workflow: TransactionWorkflowService | None = None,
        session_factory: Callable[[], AsyncSession] = async_session_factory,
        interval_seconds: float | None = None,
        batch_size: int | None = None,
    ) -> None:
        self._workflow = workflow or TransactionWorkflowService()
        self._session_factory = session_factory
        self._interval = interval_seconds or settings.EXPIRY_SWEEP_INTERVAL_SECONDS
        self._batch_size = batch_size or settings.EXPIRY_SWEEP_BATCH_SIZE
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """Expire up to one batch of overdue transactions. Returns how many expired."""
        async with self._session_factory() as db:
            overdue_ids = await self._workflow.list_overdue_ids(db, self._batch_size)

        expired = 0
        for transaction_id in overdue_ids:
            try:
                async with self._session_factory() as db:
                    if await self._workflow.auto_expire(db, transaction_id) is not None:
                        expired += 1
            except Exception:
                logger.exception("Failed to expire transaction %s", transaction_id)

        if overdue_ids:
            logger.info("Expiry sweep: %d overdue, %d expired", len(overdue_ids), expired)
        return expired

    def start(self) -> None:
        if self.is_running:
            logger.warning("Expiry sweeper already running")
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._loop(), name="expiry_sweeper")
        logger.info("Expiry sweeper started (interval=%ss)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiry sweeper stopped")

    async def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception:
                logger.exception("Expiry sweep failed")
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass
