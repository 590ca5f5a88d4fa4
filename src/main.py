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
from src.bx_account.api.router import router as account_router
from src.bx_book.api.router import router as book_router
from src.bx_common.database import engine
from src.bx_common.errors import AppError
from src.bx_common.redis_client import close_redis
from src.bx_common.response import error_response
from src.bx_exchange.api.router import router as exchange_router
from src.bx_gateway.middleware.request_log import RequestLogMiddleware
from src.bx_report.api.admin_router import router as admin_report_router
from src.bx_report.api.router import router as report_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify the DB connection. Shutdown: dispose engine and Redis pool.

    Redis is only a valuation cache, so it is connected lazily and not probed.
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("%s started", settings.APP_NAME)
    yield
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
    resp = error_response(exc.code, exc.message, request)
    if exc.http_status >= 500:
        logger.error("AppError %d on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(account_router, prefix="/api/v1")
app.include_router(book_router, prefix="/api/v1")
app.include_router(exchange_router, prefix="/api/v1")
app.include_router(report_router, prefix="/api/v1")
app.include_router(admin_report_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
