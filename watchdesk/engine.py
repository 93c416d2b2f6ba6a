# watchdesk/engine.py
"""
watchdesk/engine.py
============================================================
Watchlist Engine v1.0.0

Owns the provider client, the response cache and the pipeline components,
and assembles what presentation code consumes.

✅ build_view(user_id): enrichment + news run concurrently
✅ collect_news_digests(emails): per-user news, one user's failure never affects another
✅ get_engine(): lazy process-wide singleton from get_settings()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional

from watchdesk.cache import Clock, ResponseCache
from watchdesk.config import Settings, get_settings
from watchdesk.enrichment import BatchEnricher, MarketDataProvider
from watchdesk.news import NewsAggregator
from watchdesk.providers.finnhub_provider import CachedFinnhubClient, FinnhubClient, ttls_from_settings
from watchdesk.schemas import NewsDigest, WatchlistView, normalize_symbols
from watchdesk.search import SymbolSearch
from watchdesk.watchlist import InMemoryWatchlistStore, WatchlistStore, enrich_alerts

logger = logging.getLogger("watchdesk.engine")

ENGINE_VERSION = "1.0.0"


class WatchlistEngine:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        provider: Optional[MarketDataProvider] = None,
        store: Optional[WatchlistStore] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.settings = settings or get_settings()
        s = self.settings

        self.cache = ResponseCache(maxsize=s.cache_max_size, clock=clock)
        if provider is None:
            client = FinnhubClient(
                s.finnhub_api_token,
                base_url=s.finnhub_base_url,
                timeout=s.http_timeout,
                ua=s.finnhub_ua,
            )
            provider = CachedFinnhubClient(client, self.cache, ttls_from_settings(s))
        self.provider = provider
        self.store: WatchlistStore = store if store is not None else InMemoryWatchlistStore()

        self.enricher = BatchEnricher(self.provider)
        self.news = NewsAggregator(
            self.provider,
            max_articles=s.news_max_articles,
            window_days=s.news_window_days,
            dedup_cap=s.news_dedup_cap,
        )
        self.search = SymbolSearch(self.provider, s.popular_symbols, max_results=s.search_max_results)

        logger.info(
            "WatchlistEngine v%s | provider_configured=%s | cache_max=%d",
            ENGINE_VERSION,
            self.provider.configured,
            s.cache_max_size,
        )

    async def build_view(self, user_id: str) -> WatchlistView:
        entries, alerts = await asyncio.gather(
            self.store.list_entries(user_id),
            self.store.list_alerts(user_id),
        )
        if not entries:
            return WatchlistView(alerts=enrich_alerts(alerts, {}))

        by_symbol = {e.symbol: e for e in entries}
        symbols = normalize_symbols(e.symbol for e in entries)

        stocks, news = await asyncio.gather(
            self.enricher.enrich(symbols, by_symbol),
            self.news.get_news(symbols),
        )

        return WatchlistView(
            symbols=symbols,
            stocks=[stocks[s] for s in symbols],
            alerts=enrich_alerts(alerts, stocks),
            news=news,
        )

    async def _digest_for(self, email: str) -> NewsDigest:
        symbols: List[str] = []
        try:
            symbols = await self.store.symbols_for_email(email)
            news = await self.news.get_news(symbols or None)
        except Exception as exc:
            logger.warning("news digest failed for %s: %s", email, exc)
            return NewsDigest(email=email, symbols=symbols, news=[], error=str(exc))
        return NewsDigest(email=email, symbols=symbols, news=news)

    async def collect_news_digests(self, emails: Iterable[str]) -> List[NewsDigest]:
        return list(await asyncio.gather(*[self._digest_for(e) for e in emails]))

    async def aclose(self) -> None:
        aclose = getattr(self.provider, "aclose", None)
        if aclose is not None:
            await aclose()


# Convenience module-level singleton
_ENGINE_SINGLETON: Optional[WatchlistEngine] = None


def get_engine() -> WatchlistEngine:
    global _ENGINE_SINGLETON
    if _ENGINE_SINGLETON is None:
        _ENGINE_SINGLETON = WatchlistEngine(get_settings())
    return _ENGINE_SINGLETON


__all__ = ["WatchlistEngine", "get_engine", "ENGINE_VERSION"]
