"""Unit tests for ExpirySweeper."""

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

from src.cm_transaction.application.sweeper import ExpirySweeper


@asynccontextmanager
async def _session():
    yield MagicMock()


def _workflow(overdue: list[str], results: list) -> MagicMock:
    workflow = MagicMock()
    workflow.list_overdue_ids = AsyncMock(return_value=overdue)
    workflow.auto_expire = AsyncMock(side_effect=results)
    return workflow


class TestRunOnce:
    async def test_expires_each_overdue_transaction(self) -> None:
        workflow = _workflow(["tx-1", "tx-2"], [MagicMock(), MagicMock()])
        sweeper = ExpirySweeper(workflow=workflow, session_factory=_session, batch_size=25)

        assert await sweeper.run_once() == 2
        workflow.list_overdue_ids.assert_awaited_once()
        assert workflow.list_overdue_ids.await_args.args[1] == 25

    async def test_failure_on_one_does_not_stop_the_rest(self) -> None:
        workflow = _workflow(
            ["tx-1", "tx-2", "tx-3"], [MagicMock(), RuntimeError("deadlock"), None]
        )
        sweeper = ExpirySweeper(workflow=workflow, session_factory=_session)

        # tx-2 failed, tx-3 was already expired by a concurrent reader
        assert await sweeper.run_once() == 1
        assert workflow.auto_expire.await_count == 3

    async def test_nothing_overdue(self) -> None:
        workflow = _workflow([], [])
        sweeper = ExpirySweeper(workflow=workflow, session_factory=_session)
        assert await sweeper.run_once() == 0
        workflow.auto_expire.assert_not_awaited()


class TestLifecycle:
    async def test_start_runs_a_sweep_and_stop_ends_loop(self) -> None:
        workflow = _workflow([], [])
        sweeper = ExpirySweeper(
            workflow=workflow, session_factory=_session, interval_seconds=60
        )

        sweeper.start()
        for _ in range(5):
            await asyncio.sleep(0)
        assert sweeper.is_running
        await sweeper.stop()

        assert not sweeper.is_running
        workflow.list_overdue_ids.assert_awaited()

    async def test_stop_without_start_is_noop(self) -> None:
        await ExpirySweeper(workflow=_workflow([], []), session_factory=_session).stop()
