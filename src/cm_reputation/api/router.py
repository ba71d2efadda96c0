"""cm_reputation REST endpoints.

GET /profiles/me/reputation
GET /profiles/{user_id}/reputation
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.database import get_db_session
from src.cm_common.response import ApiResponse, respond
from src.cm_gateway.auth.dependencies import get_current_user_id
from src.cm_reputation.application.service import ReputationService

router = APIRouter(prefix="/profiles", tags=["reputation"])

_service = ReputationService()


@router.get("/me/reputation")
async def get_my_reputation(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.get_reputation(db, user_id))


@router.get("/{profile_id}/reputation")
async def get_reputation(
    profile_id: str,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.get_reputation(db, profile_id))
