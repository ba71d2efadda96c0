"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.cm_common.database import engine
from src.cm_common.errors import AppError
from src.cm_common.redis_client import close_redis, get_redis
from src.cm_common.response import error_response
from src.cm_gateway.api.router import router as auth_router
from src.cm_gateway.middleware.request_log import RequestLogMiddleware
from src.cm_listing.api.router import router as listing_router
from src.cm_notification.api.router import router as notification_router
from src.cm_offer.api.router import router as offer_router
from src.cm_realtime.api.router import router as feed_router
from src.cm_reputation.api.router import router as reputation_router
from src.cm_transaction.api.router import router as transaction_router
from src.cm_transaction.application.sweeper import ExpirySweeper

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, start the expiry sweeper. Shutdown: reverse."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()

    sweeper: ExpirySweeper | None = None
    if settings.EXPIRY_SWEEP_ENABLED:
        sweeper = ExpirySweeper()
        sweeper.start()
    app.state.expiry_sweeper = sweeper

    yield

    if sweeper is not None:
        await sweeper.stop()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    if exc.http_status >= 500:
        logger.error("AppError %d on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(listing_router, prefix="/api/v1")
app.include_router(offer_router, prefix="/api/v1")
app.include_router(transaction_router, prefix="/api/v1")
app.include_router(reputation_router, prefix="/api/v1")
app.include_router(notification_router, prefix="/api/v1")
app.include_router(feed_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
