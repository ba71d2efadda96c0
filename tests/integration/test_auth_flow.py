"""Integration tests for the auth flow.

Run: pytest tests/integration/test_auth_flow.py -v
"""

import uuid

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio(loop_scope="session")


def unique_user() -> dict[str, str]:
    uid = uuid.uuid4().hex[:8]
    return {
        "username": f"collector_{uid}",
        "email": f"collector_{uid}@example.com",
        "password": "Collector1",
    }


async def _login(client: AsyncClient, user: dict[str, str]) -> dict:
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username": user["username"], "password": user["password"]},
    )
    return resp.json()


class TestRegister:
    async def test_register_creates_profile_with_full_legit_rate(self, client: AsyncClient) -> None:
        user = unique_user()
        resp = await client.post("/api/v1/auth/register", json=user)
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["username"] == user["username"]
        assert data["legit_rate"] == 100

        token = (await _login(client, user))["data"]["access_token"]
        rep = await client.get(
            "/api/v1/profiles/me/reputation", headers={"Authorization": f"Bearer {token}"}
        )
        assert rep.status_code == 200
        assert rep.json()["data"]["legit_rate"] == 100
        assert rep.json()["data"]["total_transactions"] == 0

    async def test_register_duplicate_username(self, client: AsyncClient) -> None:
        user = unique_user()
        await client.post("/api/v1/auth/register", json=user)
        resp = await client.post(
            "/api/v1/auth/register", json={**user, "email": "someone_else@example.com"}
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == 1001

    async def test_register_weak_password(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/auth/register", json={**unique_user(), "password": "weak"}
        )
        assert resp.status_code == 422


class TestLoginAndRefresh:
    async def test_login_wrong_password(self, client: AsyncClient) -> None:
        user = unique_user()
        await client.post("/api/v1/auth/register", json=user)
        body = await _login(client, {**user, "password": "WrongPass1"})
        assert body["code"] == 1003

    async def test_refresh_issues_new_access_token(self, client: AsyncClient) -> None:
        user = unique_user()
        await client.post("/api/v1/auth/register", json=user)
        refresh_token = (await _login(client, user))["data"]["refresh_token"]

        resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
        assert resp.status_code == 200
        assert resp.json()["data"]["expires_in"] > 0

    async def test_refresh_with_access_token_fails(self, client: AsyncClient) -> None:
        user = unique_user()
        await client.post("/api/v1/auth/register", json=user)
        access_token = (await _login(client, user))["data"]["access_token"]

        resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": access_token})
        assert resp.status_code == 401
        assert resp.json()["code"] == 1005
