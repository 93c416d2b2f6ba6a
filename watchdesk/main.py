"""
watchdesk/main.py
------------------------------------------------------------
Watchdesk - FastAPI Entry Point v1.0.0

Goals
- Fast liveness endpoint: /healthz
- One shared engine in app.state.engine (cache stays warm across requests)
- Clean shutdown (lifespan) + engine close
- Always-JSON errors:
    ConfigurationError -> 503 | ProviderError -> 502 | validation -> 422 | other -> 500

Run
    uvicorn watchdesk.main:app --log-level ${LOG_LEVEL:-info}
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from watchdesk.config import Settings, get_settings
from watchdesk.engine import WatchlistEngine
from watchdesk.errors import ConfigurationError, ProviderError
from watchdesk.logging import setup_logging
from watchdesk.routes import health_router, watchlist_router

logger = logging.getLogger("watchdesk.main")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# App factory (lifespan)
# =============================================================================
def create_app(settings: Optional[Settings] = None, engine: Optional[WatchlistEngine] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app_: FastAPI):
        app_.state.start_time_utc = _utc_now_iso()
        owns_engine = app_.state.engine is None
        if owns_engine:
            app_.state.engine = WatchlistEngine(settings)
        if not settings.provider_configured:
            logger.warning("FINNHUB_API_KEY is not set: market-data endpoints will answer 503")
        logger.info("%s v%s started (env=%s)", app_.title, app_.version, settings.environment)

        yield

        if owns_engine and app_.state.engine is not None:
            await app_.state.engine.aclose()
            app_.state.engine = None
        logger.info("%s stopped", app_.title)

    app_ = FastAPI(title=settings.service_name, version=settings.service_version, lifespan=lifespan)
    app_.state.settings = settings
    app_.state.engine = engine

    # CORS
    allow_origins = settings.cors_origins_list
    app_.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception handling (always JSON)
    # -------------------------------------------------------------------------
    @app_.exception_handler(ConfigurationError)
    async def _config_exc_handler(request: Request, exc: ConfigurationError):
        return JSONResponse(status_code=503, content={"status": "error", "error": "not_configured", "detail": str(exc)})

    @app_.exception_handler(ProviderError)
    async def _provider_exc_handler(request: Request, exc: ProviderError):
        logger.warning("provider error on %s: %s", request.url.path, exc, extra={"kind": exc.kind})
        return JSONResponse(
            status_code=502,
            content={
                "status": "error",
                "error": "provider_error",
                "detail": str(exc),
                "upstream_status": exc.status,
            },
        )

    @app_.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"status": "error", "detail": exc.detail})

    @app_.exception_handler(RequestValidationError)
    async def _validation_exc_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"status": "error", "detail": "Validation error", "errors": jsonable_encoder(exc.errors())},
        )

    @app_.exception_handler(Exception)
    async def _unhandled_exc_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"status": "error", "error": "Internal Server Error", "detail": str(exc)[:2000]},
        )

    app_.include_router(health_router)
    app_.include_router(watchlist_router)

    return app_


# Required by uvicorn
app = create_app()
