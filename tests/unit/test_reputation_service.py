"""Unit tests for ReputationService (lock, score, write back)."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.cm_common.enums import ReputationOutcome
from src.cm_common.errors import ProfileNotFoundError
from src.cm_reputation.application.service import ReputationService
from src.cm_reputation.domain.models import Reputation

TODAY = date(2026, 5, 4)


@pytest.fixture
def db() -> MagicMock:
    return MagicMock()


class TestRecordOutcome:
    async def test_locks_scores_and_saves(self, db) -> None:
        repo = AsyncMock()
        repo.get_for_update.return_value = Reputation(user_id="buyer-1", legit_rate=90)

        updated = await ReputationService(repo=repo).record_outcome(
            db, "buyer-1", ReputationOutcome.CANCELLED_BY_BUYER, TODAY
        )

        assert updated.legit_rate == 85
        repo.get_for_update.assert_awaited_once_with(db, "buyer-1")
        repo.save.assert_awaited_once_with(db, updated)
        repo.get.assert_not_awaited()

    async def test_missing_profile(self, db) -> None:
        repo = AsyncMock()
        repo.get_for_update.return_value = None

        with pytest.raises(ProfileNotFoundError):
            await ReputationService(repo=repo).record_outcome(
                db, "ghost", ReputationOutcome.COMPLETED, TODAY
            )
        repo.save.assert_not_awaited()

    async def test_does_not_commit(self, db) -> None:
        db.commit = AsyncMock()
        repo = AsyncMock()
        repo.get_for_update.return_value = Reputation(user_id="buyer-1")

        await ReputationService(repo=repo).record_outcome(
            db, "buyer-1", ReputationOutcome.COMPLETED, TODAY
        )

        db.commit.assert_not_awaited()


class TestGetReputation:
    async def test_returns_snapshot(self, db) -> None:
        repo = AsyncMock()
        repo.get.return_value = Reputation(
            user_id="buyer-1",
            legit_rate=70,
            total_transactions=6,
            cancelled_transactions=2,
            daily_cancellations=2,
            last_cancellation_date=TODAY,
        )

        resp = await ReputationService(repo=repo).get_reputation(db, "buyer-1")

        assert resp.legit_rate == 70
        assert resp.last_cancellation_date == "2026-05-04"

    async def test_missing_profile(self, db) -> None:
        repo = AsyncMock()
        repo.get.return_value = None
        with pytest.raises(ProfileNotFoundError):
            await ReputationService(repo=repo).get_reputation(db, "ghost")
