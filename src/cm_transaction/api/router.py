"""cm_transaction REST endpoints.

POST /listings/{card_id}/offers/{offer_id}/accept   — seller opens a transaction
GET  /transactions?role=buyer|seller                — caller's history, every status
GET  /transactions/active                           — caller's open room, if any
GET  /transactions/{transaction_id}
POST /transactions/{transaction_id}/complete        — seller only
POST /transactions/{transaction_id}/cancel          — either party, reason required
GET  /transactions/{transaction_id}/cancellations
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.database import get_db_session
from src.cm_common.response import ApiResponse, respond
from src.cm_gateway.auth.dependencies import get_current_user_id
from src.cm_transaction.application.schemas import CancelTransactionRequest
from src.cm_transaction.application.service import TransactionWorkflowService

router = APIRouter(tags=["transactions"])

_service = TransactionWorkflowService()


@router.post(
    "/listings/{card_id}/offers/{offer_id}/accept",
    status_code=status.HTTP_201_CREATED,
)
async def accept_offer(
    card_id: str,
    offer_id: str,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.accept_offer(db, card_id, offer_id, user_id))


@router.get("/transactions")
async def list_transactions(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    role: Literal["buyer", "seller"] | None = Query(
        None, description="buyer: purchases, seller: sales. Default: both."
    ),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    return respond(
        request, await _service.list_transactions(db, user_id, role, cursor, limit)
    )


@router.get("/transactions/active")
async def get_active_transaction(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.get_active_transaction(db, user_id))


@router.get("/transactions/{transaction_id}")
async def get_transaction(
    transaction_id: str,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.get_transaction(db, transaction_id, user_id))


@router.post("/transactions/{transaction_id}/complete")
async def complete_transaction(
    transaction_id: str,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.complete(db, transaction_id, user_id))


@router.post("/transactions/{transaction_id}/cancel")
async def cancel_transaction(
    transaction_id: str,
    body: CancelTransactionRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(
        request, await _service.cancel(db, transaction_id, user_id, body.reason)
    )


@router.get("/transactions/{transaction_id}/cancellations")
async def list_cancellations(
    transaction_id: str,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(
        request, await _service.list_cancellations(db, transaction_id, user_id)
    )
