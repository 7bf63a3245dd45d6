"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.pm_common.errors import AppError
from src.pm_common.response import error_response
from src.pm_feed.api.router import router as feed_router
from src.pm_feed.infrastructure.client import FeedClient
from src.pm_gateway.middleware.request_log import RequestLogMiddleware
from src.pm_ledger.infrastructure.rpc import LedgerRpcClient
from src.pm_ledger.infrastructure.signer import WalletBridgeSigner
from src.pm_market.api.router import router as market_router
from src.pm_market.application.service import build_market_service

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("pm.app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: open HTTP clients and wire services. Shutdown: close clients."""
    async with (
        httpx.AsyncClient(
            base_url=settings.LEDGER_NODE_URL,
            timeout=settings.LEDGER_READ_TIMEOUT_SECONDS,
        ) as ledger_http,
        httpx.AsyncClient(
            base_url=settings.SIGNER_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        ) as signer_http,
        httpx.AsyncClient(
            base_url=settings.FEED_API_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        ) as feed_http,
    ):
        rpc = LedgerRpcClient(ledger_http)
        signer = WalletBridgeSigner(signer_http)
        app.state.market_service = build_market_service(rpc, signer, settings)
        app.state.feed_client = FeedClient(feed_http, settings.FEED_CAMPAIGN)
        logger.info(
            "Ledger %s, program %s::%s, home market %s",
            settings.LEDGER_NODE_URL,
            settings.MODULE_ADDRESS,
            settings.MODULE_NAME,
            settings.DEFAULT_MARKET_ID,
        )
        yield


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
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(market_router, prefix="/api/v1")
app.include_router(feed_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
