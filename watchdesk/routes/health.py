from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from watchdesk.config import get_settings

router = APIRouter(tags=["system"])


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.api_route("/", methods=["GET", "HEAD"], include_in_schema=False)
async def root(request: Request):
    return {
        "status": "ok",
        "app": request.app.title,
        "version": request.app.version,
        "docs": "/docs",
        "health": "/health",
        "time_utc": _utc_now_iso(),
    }


@router.api_route("/healthz", methods=["GET", "HEAD"], include_in_schema=False)
async def healthz():
    # Always OK and fast (liveness)
    return {"status": "ok"}


@router.get("/health")
async def health(request: Request):
    settings = getattr(request.app.state, "settings", None) or get_settings()
    engine = getattr(request.app.state, "engine", None)
    return {
        "status": "ok",
        "app": request.app.title,
        "version": request.app.version,
        "env": settings.environment,
        "provider": "finnhub",
        "provider_configured": settings.provider_configured,
        "cache": engine.cache.get_stats() if engine is not None else None,
        "start_time_utc": getattr(request.app.state, "start_time_utc", None),
        "time_utc": _utc_now_iso(),
    }


@router.get("/system/settings")
async def system_settings(request: Request):
    settings = getattr(request.app.state, "settings", None) or get_settings()
    return {"status": "ok", "settings": settings.as_safe_dict()}
