# watchdesk/search.py
"""
Symbol search.

With a query: one (cached) provider search call; its failure propagates.
Without a query: profiles of the first popular symbols, failed profiles skipped.
Results are marked against the caller's watchlist and capped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Sequence

from watchdesk.enrichment import MarketDataProvider, require_configured, settle
from watchdesk.providers.finnhub_provider import EndpointKind
from watchdesk.schemas import Profile, SearchResult, StockSearchHit, normalize_symbol, normalize_symbols

logger = logging.getLogger("watchdesk.search")

DEFAULT_MAX_RESULTS = 15
POPULAR_LIMIT = 10


class SymbolSearch:
    def __init__(
        self,
        provider: MarketDataProvider,
        popular_symbols: Sequence[str],
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> None:
        self.provider = provider
        self.popular_symbols = normalize_symbols(popular_symbols)
        self.max_results = max(1, int(max_results))

    async def _popular(self) -> List[StockSearchHit]:
        syms = self.popular_symbols[:POPULAR_LIMIT]
        outcomes = await asyncio.gather(
            *[
                settle(self.provider.fetch(EndpointKind.PROFILE, symbol=s), None, symbol=s, kind=EndpointKind.PROFILE)
                for s in syms
            ]
        )

        hits: List[StockSearchHit] = []
        for sym, outcome in zip(syms, outcomes):
            profile: Optional[Profile] = outcome.value
            if profile is None:
                continue
            hits.append(
                StockSearchHit(
                    symbol=sym,
                    name=profile.company_name or sym,
                    exchange=profile.exchange or "US",
                    type="Common Stock",
                )
            )
        return hits

    async def _query(self, query: str) -> List[StockSearchHit]:
        results: List[SearchResult] = await self.provider.fetch(EndpointKind.SEARCH, q=query)
        return [
            StockSearchHit(
                symbol=normalize_symbol(r.symbol),
                name=r.description,
                exchange=r.display_symbol or "US",
                type=r.type or "Stock",
            )
            for r in results
        ]

    async def search(
        self,
        query: Optional[str] = None,
        watchlist_symbols: Iterable[str] = (),
    ) -> List[StockSearchHit]:
        require_configured(self.provider)

        q = (query or "").strip()
        hits = await (self._query(q) if q else self._popular())

        in_watchlist = set(normalize_symbols(watchlist_symbols))
        for hit in hits:
            hit.is_in_watchlist = hit.symbol in in_watchlist

        logger.debug("search q=%r -> %d hits", q, len(hits))
        return hits[: self.max_results]


__all__ = ["SymbolSearch"]
