"""cm_offer REST endpoints (nested under a listing).

POST /listings/{card_id}/offers                      — submit or reprice
GET  /listings/{card_id}/offers                      — highest price first
POST /listings/{card_id}/offers/{offer_id}/reject    — seller only
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.database import get_db_session
from src.cm_common.response import ApiResponse, respond
from src.cm_gateway.auth.dependencies import get_current_user_id
from src.cm_offer.application.schemas import SubmitOfferRequest
from src.cm_offer.application.service import OfferApplicationService

router = APIRouter(prefix="/listings/{card_id}/offers", tags=["offers"])

_service = OfferApplicationService()


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_offer(
    card_id: str,
    body: SubmitOfferRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.submit_offer(db, card_id, user_id, body))


@router.get("")
async def list_offers(
    card_id: str,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.list_offers(db, card_id))


@router.post("/{offer_id}/reject")
async def reject_offer(
    card_id: str,
    offer_id: str,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.reject_offer(db, card_id, offer_id, user_id))
