# watchdesk/enrichment.py
"""
watchdesk/enrichment.py
------------------------------------------------------------
Batch Enrichment Coordinator v1.0.0

For a set of symbols:
- quote per symbol (parallel)
- profile + metric per symbol (parallel)
- merge into one EnrichedStock per symbol and format for display

Rules
- ✅ One EnrichedStock per normalized input symbol, even if every call fails
- ✅ A per-symbol failure settles to an empty Outcome (logged), never crosses the gather
- ✅ ConfigurationError is raised before any fan-out
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    TypeVar,
)

from watchdesk.errors import ConfigurationError
from watchdesk.formatting import (
    format_change_percent,
    format_market_cap,
    format_price,
    format_ratio,
)
from watchdesk.providers.finnhub_provider import EndpointKind
from watchdesk.schemas import EnrichedStock, Metric, Profile, Quote, WatchlistEntry, normalize_symbols

logger = logging.getLogger("watchdesk.enrichment")

T = TypeVar("T")


class MarketDataProvider(Protocol):
    """Anything that fetches typed records by endpoint kind (FinnhubClient, CachedFinnhubClient, fakes)."""

    @property
    def configured(self) -> bool: ...

    async def fetch(self, kind: EndpointKind, **params: Any) -> Any: ...


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle(aw: Awaitable[T], default: T, *, symbol: str, kind: EndpointKind) -> Outcome[T]:
    """Await one fan-out branch; any failure but ConfigurationError becomes Outcome(default, error)."""
    try:
        return Outcome(await aw)
    except ConfigurationError:
        raise
    except Exception as exc:
        logger.warning(
            "%s failed for %s: %s",
            kind.value,
            symbol,
            exc,
            extra={"symbol": symbol, "kind": kind.value, "provider": "finnhub"},
        )
        return Outcome(default, str(exc))


def require_configured(provider: MarketDataProvider) -> None:
    if not provider.configured:
        raise ConfigurationError("finnhub: not configured (FINNHUB_API_KEY)")


def merge_stock(
    symbol: str,
    quote: Quote,
    profile: Profile,
    metric: Metric,
    entry: Optional[WatchlistEntry] = None,
) -> EnrichedStock:
    market_cap = profile.market_cap_millions * 1e6 if profile.market_cap_millions is not None else None
    company = (entry.company if entry else "") or profile.company_name or symbol

    return EnrichedStock(
        symbol=symbol,
        company=company,
        added_at=entry.added_at if entry else None,
        current_price=quote.current_price,
        change_percent=quote.change_percent,
        market_cap_value=market_cap,
        pe_ratio_value=metric.pe_ratio_annual,
        price_formatted=format_price(quote.current_price),
        change_formatted=format_change_percent(quote.change_percent),
        market_cap=format_market_cap(market_cap),
        pe_ratio=format_ratio(metric.pe_ratio_annual),
    )


class BatchEnricher:
    def __init__(self, provider: MarketDataProvider) -> None:
        self.provider = provider

    async def _quotes(self, symbols: Sequence[str]) -> List[Outcome[Quote]]:
        return list(
            await asyncio.gather(
                *[
                    settle(self.provider.fetch(EndpointKind.QUOTE, symbol=s), Quote(), symbol=s, kind=EndpointKind.QUOTE)
                    for s in symbols
                ]
            )
        )

    async def _profiles(self, symbols: Sequence[str]) -> List[Outcome[Profile]]:
        return list(
            await asyncio.gather(
                *[
                    settle(
                        self.provider.fetch(EndpointKind.PROFILE, symbol=s),
                        Profile(),
                        symbol=s,
                        kind=EndpointKind.PROFILE,
                    )
                    for s in symbols
                ]
            )
        )

    async def _metrics(self, symbols: Sequence[str]) -> List[Outcome[Metric]]:
        return list(
            await asyncio.gather(
                *[
                    settle(
                        self.provider.fetch(EndpointKind.METRIC, symbol=s),
                        Metric(),
                        symbol=s,
                        kind=EndpointKind.METRIC,
                    )
                    for s in symbols
                ]
            )
        )

    async def enrich(
        self,
        symbols: Iterable[str],
        entries: Optional[Mapping[str, WatchlistEntry]] = None,
    ) -> Dict[str, EnrichedStock]:
        """
        Returns {symbol: EnrichedStock} in normalized input order.
        `entries` (optional, keyed by uppercase symbol) supplies company/added_at.
        """
        require_configured(self.provider)

        syms = normalize_symbols(symbols)
        if not syms:
            return {}

        quotes, profiles, metrics = await asyncio.gather(
            self._quotes(syms),
            self._profiles(syms),
            self._metrics(syms),
        )

        failed = sum(1 for o in (*quotes, *profiles, *metrics) if not o.ok)
        if failed:
            logger.info("enrich: %d symbols, %d provider calls failed", len(syms), failed)

        entries = entries or {}
        out: Dict[str, EnrichedStock] = {}
        for i, sym in enumerate(syms):
            out[sym] = merge_stock(sym, quotes[i].value, profiles[i].value, metrics[i].value, entries.get(sym))
        return out


__all__ = ["BatchEnricher", "MarketDataProvider", "Outcome", "merge_stock", "require_configured", "settle"]
