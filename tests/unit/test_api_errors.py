"""HTTP-level tests: auth guard and AppError → ApiResponse envelope."""

from unittest.mock import AsyncMock, patch

import pytest

from src.cm_common.database import get_db_session
from src.cm_common.errors import ListingUnavailableError, TransactionExpiredError
from src.cm_gateway.auth.dependencies import get_current_user_id
from src.cm_transaction.application.schemas import TransactionListResponse
from src.main import app


async def _no_db():
    yield None


@pytest.fixture
def as_seller():
    app.dependency_overrides[get_current_user_id] = lambda: "seller-1"
    app.dependency_overrides[get_db_session] = _no_db
    yield
    app.dependency_overrides.clear()


async def test_health(client) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/api/v1/transactions/active"),
        ("get", "/api/v1/transactions"),
        ("get", "/api/v1/listings"),
        ("post", "/api/v1/transactions/tx-1/complete"),
        ("get", "/api/v1/notifications"),
    ],
)
async def test_endpoints_require_auth(client, method: str, path: str) -> None:
    resp = await getattr(client, method)(path)
    assert resp.status_code == 401


async def test_expired_transaction_maps_to_409(client, as_seller) -> None:
    with patch(
        "src.cm_transaction.api.router._service.complete",
        AsyncMock(side_effect=TransactionExpiredError("tx-1")),
    ):
        resp = await client.post("/api/v1/transactions/tx-1/complete")

    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == 5003
    assert body["data"] is None
    assert body["request_id"].startswith("req_")


async def test_lost_acceptance_race_maps_to_409(client, as_seller) -> None:
    with patch(
        "src.cm_transaction.api.router._service.accept_offer",
        AsyncMock(side_effect=ListingUnavailableError("card-1")),
    ):
        resp = await client.post("/api/v1/listings/card-1/offers/offer-1/accept")

    assert resp.status_code == 409
    assert resp.json()["code"] == 3002


async def test_cancel_body_is_validated(client, as_seller) -> None:
    resp = await client.post("/api/v1/transactions/tx-1/cancel", json={})
    assert resp.status_code == 422


async def test_history_passes_role_filter(client, as_seller) -> None:
    listed = AsyncMock(
        return_value=TransactionListResponse(items=[], next_cursor=None, has_more=False)
    )
    with patch("src.cm_transaction.api.router._service.list_transactions", listed):
        resp = await client.get("/api/v1/transactions", params={"role": "seller", "limit": 5})

    assert resp.status_code == 200
    assert resp.json()["data"]["items"] == []
    assert listed.await_args.args[1:] == ("seller-1", "seller", None, 5)


async def test_history_rejects_unknown_role(client, as_seller) -> None:
    resp = await client.get("/api/v1/transactions", params={"role": "system"})
    assert resp.status_code == 422
