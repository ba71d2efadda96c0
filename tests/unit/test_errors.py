"""Tests for cm_common.errors and cm_common.response."""

from unittest.mock import MagicMock

from pydantic import BaseModel

from src.cm_common.errors import (
    AppError,
    CancellationReasonTooShortError,
    ListingUnavailableError,
    OfferNotPendingError,
    ProfileNotFoundError,
    TransactionExpiredError,
    TransactionNotActiveError,
)
from src.cm_common.response import ApiResponse, error_response, respond, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1001, message="test"), Exception)


class TestSpecificErrors:
    def test_listing_unavailable_is_conflict(self) -> None:
        err = ListingUnavailableError("card-1")
        assert err.code == 3002
        assert err.http_status == 409
        assert "card-1" in err.message

    def test_offer_not_pending(self) -> None:
        err = OfferNotPendingError("offer-1", "chosen")
        assert err.code == 4002
        assert "chosen" in err.message

    def test_transaction_not_active(self) -> None:
        err = TransactionNotActiveError("tx-1", "completed")
        assert err.code == 5002
        assert err.http_status == 409
        assert "completed" in err.message

    def test_transaction_expired(self) -> None:
        err = TransactionExpiredError("tx-1")
        assert err.code == 5003
        assert err.http_status == 409

    def test_reason_too_short_mentions_minimum(self) -> None:
        err = CancellationReasonTooShortError(10)
        assert err.code == 5004
        assert err.http_status == 422
        assert "10" in err.message

    def test_profile_not_found(self) -> None:
        err = ProfileNotFoundError("user-1")
        assert err.code == 2001
        assert err.http_status == 404


class TestApiResponse:
    def test_success_response(self) -> None:
        resp = success_response({"id": "1"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": "1"}
        assert resp.request_id.startswith("req_")

    def test_error_response(self) -> None:
        resp = error_response(5003, "Transaction has expired")
        assert resp.code == 5003
        assert resp.data is None

    def test_respond_dumps_model_and_uses_request_id(self) -> None:
        class _Payload(BaseModel):
            price_cents: int

        request = MagicMock()
        request.state.request_id = "req_abc"
        resp = respond(request, _Payload(price_cents=6500))
        assert isinstance(resp, ApiResponse)
        assert resp.data == {"price_cents": 6500}
        assert resp.request_id == "req_abc"
