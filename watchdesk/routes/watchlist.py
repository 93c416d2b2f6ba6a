# watchdesk/routes/watchlist.py
"""
watchdesk/routes/watchlist.py
------------------------------------------------------------
Watchlist Router v1.0.0

- ✅ Prefers app.state.engine, else watchdesk.engine.get_engine() (singleton, keeps cache warm)
- ✅ Errors are NOT caught here: app-level handlers map them
    ConfigurationError -> 503, ProviderError -> 502

Endpoints
- GET /v1/quotes?symbols=AAPL,MSFT
- GET /v1/news?symbols=AAPL,MSFT        (no symbols -> general market news)
- GET /v1/search?q=apple&watchlist=AAPL
- GET /v1/watchlist/{user_id}
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from watchdesk.engine import WatchlistEngine, get_engine

router = APIRouter(prefix="/v1", tags=["watchlist"])


def _engine(request: Request) -> WatchlistEngine:
    eng = getattr(request.app.state, "engine", None)
    if eng is not None:
        return eng
    return get_engine()


def _split_csv(csv: Optional[str]) -> List[str]:
    raw = (csv or "").strip()
    if not raw:
        return []
    return [s.strip() for s in raw.split(",") if s.strip()]


@router.get("/quotes")
async def quotes(request: Request, symbols: str = Query(..., description="Comma-separated tickers")):
    items = await _engine(request).enricher.enrich(_split_csv(symbols))
    return {
        "status": "ok",
        "count": len(items),
        "items": {sym: stock.model_dump(mode="json") for sym, stock in items.items()},
    }


@router.get("/news")
async def news(request: Request, symbols: Optional[str] = Query(default=None)):
    items = await _engine(request).news.get_news(_split_csv(symbols) or None)
    return {
        "status": "ok",
        "count": len(items),
        "items": [a.model_dump(mode="json") for a in items],
    }


@router.get("/search")
async def search(
    request: Request,
    q: Optional[str] = Query(default=None),
    watchlist: Optional[str] = Query(default=None, description="Comma-separated tickers already watched"),
):
    hits = await _engine(request).search.search(q, _split_csv(watchlist))
    return {
        "status": "ok",
        "count": len(hits),
        "items": [h.model_dump(mode="json") for h in hits],
    }


@router.get("/watchlist/{user_id}")
async def watchlist_view(request: Request, user_id: str):
    view = await _engine(request).build_view(user_id)
    return {"status": "ok", **view.model_dump(mode="json")}
