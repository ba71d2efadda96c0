"""cm_listing REST endpoints.

POST /listings              — create a listing (seller = caller)
GET  /listings              — list with cursor pagination
GET  /listings/{card_id}    — detail
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.database import get_db_session
from src.cm_common.response import ApiResponse, respond
from src.cm_gateway.auth.dependencies import get_current_user_id
from src.cm_listing.application.schemas import CreateListingRequest
from src.cm_listing.application.service import ListingApplicationService

router = APIRouter(prefix="/listings", tags=["listings"])

_service = ListingApplicationService()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_listing(
    body: CreateListingRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.create_listing(db, user_id, body))


@router.get("")
async def list_listings(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: str | None = Query(
        None, description="Filter by status. Default: active. Use all for no filter."
    ),
    seller_id: str | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    return respond(
        request, await _service.list_listings(db, status, seller_id, cursor, limit)
    )


@router.get("/{card_id}")
async def get_listing(
    card_id: str,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.get_listing(db, card_id))
