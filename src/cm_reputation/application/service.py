"""ReputationService — applies outcomes inside the caller's transaction."""

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.enums import ReputationOutcome
from src.cm_common.errors import ProfileNotFoundError
from src.cm_reputation.application.schemas import ReputationResponse
from src.cm_reputation.domain.ledger import apply_outcome
from src.cm_reputation.domain.models import Reputation
from src.cm_reputation.domain.repository import ReputationRepositoryProtocol
from src.cm_reputation.infrastructure.persistence import ReputationRepository

logger = logging.getLogger(__name__)


class ReputationService:
    def __init__(self, repo: ReputationRepositoryProtocol | None = None) -> None:
        self._repo: ReputationRepositoryProtocol = repo or ReputationRepository()

    async def record_outcome(
        self,
        db: AsyncSession,
        user_id: str,
        outcome: ReputationOutcome,
        today: date,
    ) -> Reputation:
        """Lock, score and write back. Does NOT commit."""
        current = await self._repo.get_for_update(db, user_id)
        if current is None:
            raise ProfileNotFoundError(user_id)
        updated = apply_outcome(current, outcome, today)
        await self._repo.save(db, updated)
        logger.info(
            "Reputation %s for user %s: %d -> %d",
            outcome.value,
            user_id,
            current.legit_rate,
            updated.legit_rate,
        )
        return updated

    async def get_reputation(self, db: AsyncSession, user_id: str) -> ReputationResponse:
        rep = await self._repo.get(db, user_id)
        if rep is None:
            raise ProfileNotFoundError(user_id)
        return ReputationResponse.from_domain(rep)
