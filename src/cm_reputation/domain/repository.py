"""Repository Protocol for reputation rows (the profiles table)."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_reputation.domain.models import Reputation


class ReputationRepositoryProtocol(Protocol):
    async def get(self, db: AsyncSession, user_id: str) -> Reputation | None: ...

    async def get_for_update(self, db: AsyncSession, user_id: str) -> Reputation | None:
        """Row-lock the profile until the caller's transaction ends."""
        ...

    async def save(self, db: AsyncSession, rep: Reputation) -> None: ...
