"""Integration-test fixtures.

Requires PostgreSQL (migrated with `alembic upgrade head`) and Redis.
The whole directory is skipped when the database is unreachable.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool remain valid across the session.
"""

import uuid
from collections.abc import Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.cm_common.database import engine
from src.main import app

Party = tuple[str, dict[str, str]]


@pytest_asyncio.fixture(loop_scope="session", scope="session", autouse=True)
async def _require_database() -> None:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (OSError, SQLAlchemyError) as exc:
        pytest.skip(f"PostgreSQL unavailable: {exc}")


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def new_party(client: AsyncClient) -> Callable[[str], Awaitable[Party]]:
    """Register a fresh user; returns (user_id, auth headers)."""

    async def _register(prefix: str) -> Party:
        uid = uuid.uuid4().hex[:8]
        creds = {
            "username": f"{prefix}_{uid}",
            "email": f"{prefix}_{uid}@example.com",
            "password": "Collector1",
        }
        reg = await client.post("/api/v1/auth/register", json=creds)
        assert reg.status_code == 201, reg.text
        login = await client.post(
            "/api/v1/auth/login",
            json={"username": creds["username"], "password": creds["password"]},
        )
        token = login.json()["data"]["access_token"]
        return reg.json()["data"]["user_id"], {"Authorization": f"Bearer {token}"}

    return _register
