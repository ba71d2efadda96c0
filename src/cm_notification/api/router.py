"""cm_notification REST endpoints (all scoped to the caller).

GET  /notifications                          — list, newest first
GET  /notifications/unread-count
POST /notifications/read-all
POST /notifications/{notification_id}/read
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.database import get_db_session
from src.cm_common.response import ApiResponse, respond
from src.cm_gateway.auth.dependencies import get_current_user_id
from src.cm_notification.application.service import NotificationApplicationService

router = APIRouter(prefix="/notifications", tags=["notifications"])

_service = NotificationApplicationService()


@router.get("")
async def list_notifications(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    unread_only: bool = Query(False),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    return respond(
        request,
        await _service.list_notifications(db, user_id, unread_only, cursor, limit),
    )


@router.get("/unread-count")
async def unread_count(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.unread_count(db, user_id))


@router.post("/read-all")
async def mark_all_read(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.mark_all_read(db, user_id))


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.mark_read(db, user_id, notification_id))
