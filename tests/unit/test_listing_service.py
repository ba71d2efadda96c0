"""Unit tests for ListingApplicationService and listing schemas."""

import base64
import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from src.cm_common.errors import ListingNotFoundError
from src.cm_listing.application.schemas import (
    CreateListingRequest,
    cursor_decode,
    cursor_encode,
)
from src.cm_listing.application.service import ListingApplicationService
from src.cm_listing.domain.models import Listing


def _listing(**kwargs) -> Listing:
    defaults = dict(
        id="card-1", seller_id="seller-1", name="Blastoise", category="pokemon",
        listing_type="sale", status="active", price=8000,
        created_at=datetime(2026, 5, 1, tzinfo=UTC),
    )
    defaults.update(kwargs)
    return Listing(**defaults)


@pytest.fixture
def db() -> MagicMock:
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def repo() -> AsyncMock:
    return AsyncMock()


class TestCreateListingRequest:
    def test_sale_requires_price(self) -> None:
        with pytest.raises(ValidationError, match="price_cents"):
            CreateListingRequest(name="Mew", category="pokemon", listing_type="sale")

    def test_auction_requires_current_bid(self) -> None:
        with pytest.raises(ValidationError, match="current_bid_cents"):
            CreateListingRequest(
                name="Mew", category="pokemon", listing_type="auction", price_cents=100
            )

    def test_razz_requires_ticket_price(self) -> None:
        req = CreateListingRequest(
            name="Mew", category="pokemon", listing_type="razz", ticket_price_cents=500
        )
        assert req.ticket_price_cents == 500

    def test_unknown_listing_type(self) -> None:
        with pytest.raises(ValidationError):
            CreateListingRequest(
                name="Mew", category="pokemon", listing_type="barter", price_cents=1
            )


class TestCreateListing:
    async def test_creates_active_listing_for_caller(self, db, repo) -> None:
        repo.create.side_effect = lambda db, listing: listing
        svc = ListingApplicationService(repo=repo)

        resp = await svc.create_listing(
            db,
            "seller-7",
            CreateListingRequest(
                name="Blastoise", category="pokemon", listing_type="sale", price_cents=8000
            ),
        )

        assert resp.seller_id == "seller-7"
        assert resp.status == "active"
        assert resp.asking_price_display == "$80.00"
        db.commit.assert_awaited_once()

    async def test_repo_failure_rolls_back(self, db, repo) -> None:
        repo.create.side_effect = RuntimeError("db down")
        svc = ListingApplicationService(repo=repo)

        with pytest.raises(RuntimeError):
            await svc.create_listing(
                db,
                "seller-7",
                CreateListingRequest(
                    name="Blastoise", category="pokemon", listing_type="sale", price_cents=8000
                ),
            )
        db.rollback.assert_awaited_once()


class TestGetListing:
    async def test_not_found(self, db, repo) -> None:
        repo.get_by_id.return_value = None
        with pytest.raises(ListingNotFoundError):
            await ListingApplicationService(repo=repo).get_listing(db, "nope")

    async def test_auction_asking_price_is_current_bid(self, db, repo) -> None:
        repo.get_by_id.return_value = _listing(listing_type="auction", price=None, current_bid=2500)
        resp = await ListingApplicationService(repo=repo).get_listing(db, "card-1")
        assert resp.asking_price_display == "$25.00"


class TestListListings:
    async def test_defaults_to_active(self, db, repo) -> None:
        repo.list_listings.return_value = []
        await ListingApplicationService(repo=repo).list_listings(db, None, None, None, 20)
        assert repo.list_listings.await_args.args[1] == "active"

    async def test_all_disables_status_filter(self, db, repo) -> None:
        repo.list_listings.return_value = []
        await ListingApplicationService(repo=repo).list_listings(db, "all", None, None, 20)
        assert repo.list_listings.await_args.args[1] is None

    async def test_has_more_when_over_limit(self, db, repo) -> None:
        repo.list_listings.return_value = [_listing(id=f"card-{i}") for i in range(3)]

        resp = await ListingApplicationService(repo=repo).list_listings(db, None, None, None, 2)

        assert resp.has_more is True
        assert len(resp.items) == 2
        assert cursor_decode(resp.next_cursor) == (datetime(2026, 5, 1, tzinfo=UTC), "card-1")
        assert repo.list_listings.await_args.args[5] == 3  # limit + 1


class TestCursor:
    def test_encode_decode(self) -> None:
        cursor = cursor_encode(_listing(id="card-42"))
        assert cursor_decode(cursor) == (datetime(2026, 5, 1, tzinfo=UTC), "card-42")

    def test_garbage_cursor_is_ignored(self) -> None:
        assert cursor_decode("not-base64!") == (None, None)

    def test_cursor_with_bad_timestamp_is_ignored(self) -> None:
        cursor = base64.b64encode(json.dumps({"ts": "x", "id": "1"}).encode()).decode()
        assert cursor_decode(cursor) == (None, None)

    async def test_bad_cursor_lists_from_the_start(self, db, repo) -> None:
        repo.list_listings.return_value = []
        cursor = base64.b64encode(json.dumps({"ts": "x", "id": "1"}).encode()).decode()

        await ListingApplicationService(repo=repo).list_listings(db, None, None, cursor, 20)

        assert repo.list_listings.await_args.args[3:5] == (None, None)
