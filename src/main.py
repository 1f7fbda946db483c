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
from src.pay_account.api.router import router as account_router
from src.pay_admin.api.router import router as admin_router
from src.pay_common.database import engine
from src.pay_common.errors import AppError
from src.pay_common.response import error_response
from src.pay_deposit.api.chain_router import router as chain_router
from src.pay_deposit.api.router import router as deposit_router
from src.pay_deposit.application.scheduler import start_scheduler, stop_scheduler
from src.pay_gateway.api.router import router as auth_router
from src.pay_gateway.middleware.request_log import RequestLogMiddleware
from src.pay_notification.api.router import router as notification_router
from src.pay_notification.infrastructure.telegram_sink import notification_sink
from src.pay_payment.api.router import router as payment_router
from src.pay_payment.api.staff_router import router as staff_router
from src.pay_rates.api.router import router as rates_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB, start expiry sweep. Shutdown: stop sweep, dispose."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    if not settings.DEPOSIT_WALLET_ADDRESS:
        logger.warning("DEPOSIT_WALLET_ADDRESS is empty; deposits will show no wallet")
    start_scheduler()
    yield
    stop_scheduler()
    await notification_sink.close()
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("AppError %s on %s: %s", exc.code, request.url.path, exc.message)
    resp = error_response(exc.code, exc.message, exc.details)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(account_router, prefix="/api/v1")
app.include_router(payment_router, prefix="/api/v1")
app.include_router(staff_router, prefix="/api/v1")
app.include_router(deposit_router, prefix="/api/v1")
app.include_router(chain_router, prefix="/api/v1")
app.include_router(notification_router, prefix="/api/v1")
app.include_router(rates_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
