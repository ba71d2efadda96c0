"""Server-Sent Events endpoints over the change feed.

GET /feed/transactions/{transaction_id}   — parties only
GET /feed/listings/{card_id}/offers
GET /feed/notifications                   — the caller's own bell
"""

import json
from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.database import get_db_session
from src.cm_common.errors import ListingNotFoundError
from src.cm_gateway.auth.dependencies import get_current_user_id
from src.cm_listing.infrastructure.persistence import ListingRepository
from src.cm_realtime.infrastructure.feed import (
    ChangeFeed,
    listing_offers_channel,
    transaction_channel,
    user_notifications_channel,
)
from src.cm_transaction.application.service import TransactionWorkflowService

router = APIRouter(prefix="/feed", tags=["realtime"])

_feed = ChangeFeed()
_workflow = TransactionWorkflowService()
_listing_repo = ListingRepository()

_SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def _stream(channel: str) -> StreamingResponse:
    async def event_generator() -> AsyncIterator[str]:
        async for event in _feed.subscribe(channel):
            yield f"event: {event.get('event', 'change')}\ndata: {json.dumps(event)}\n\n"

    return StreamingResponse(
        event_generator(), media_type="text/event-stream", headers=_SSE_HEADERS
    )


@router.get("/transactions/{transaction_id}")
async def stream_transaction(
    transaction_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> StreamingResponse:
    # Raises 404/403 for unknown transactions and non-parties.
    await _workflow.get_transaction(db, transaction_id, user_id)
    return _stream(transaction_channel(transaction_id))


@router.get("/listings/{card_id}/offers")
async def stream_listing_offers(
    card_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> StreamingResponse:
    if await _listing_repo.get_by_id(db, card_id) is None:
        raise ListingNotFoundError(card_id)
    return _stream(listing_offers_channel(card_id))


@router.get("/notifications")
async def stream_notifications(
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> StreamingResponse:
    return _stream(user_notifications_channel(user_id))
