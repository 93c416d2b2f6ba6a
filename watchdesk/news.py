# watchdesk/news.py
"""
watchdesk/news.py
------------------------------------------------------------
News Aggregator v1.0.0

Symbol mode
- company news per symbol over the trailing window (parallel, failures -> [])
- round-robin: at most one article per symbol per round, supplied symbol order
- newest first

General mode (no symbols, or symbol mode found nothing)
- one general-news call (failure propagates)
- dedup by (id, url, headline), first seen wins, bounded work
- first N in provider order
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple, TypeVar

from watchdesk.enrichment import MarketDataProvider, require_configured, settle
from watchdesk.providers.finnhub_provider import EndpointKind
from watchdesk.schemas import NewsArticle, RawNewsArticle, normalize_symbols

logger = logging.getLogger("watchdesk.news")

T = TypeVar("T")

DEFAULT_MAX_ARTICLES = 6
DEFAULT_WINDOW_DAYS = 5
DEFAULT_DEDUP_CAP = 20

COMPANY_SUMMARY_LIMIT = 200
GENERAL_SUMMARY_LIMIT = 150


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


# -----------------------------------------------------------------------------
# Article helpers
# -----------------------------------------------------------------------------
def validate_article(article: RawNewsArticle) -> bool:
    """Headline, summary and url present; timestamp finite and positive."""
    if not (article.headline or "").strip():
        return False
    if not (article.summary or "").strip():
        return False
    if not (article.url or "").strip():
        return False
    ts = article.datetime
    return ts is not None and math.isfinite(ts) and ts > 0


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def format_article(
    article: RawNewsArticle,
    *,
    is_company_news: bool,
    symbol: Optional[str] = None,
    index: int = 0,
) -> NewsArticle:
    summary = (article.summary or "").strip()
    limit = COMPANY_SUMMARY_LIMIT if is_company_news else GENERAL_SUMMARY_LIMIT

    if is_company_news:
        source = article.source or "Company News"
        category = "company"
    else:
        source = article.source or "Market News"
        category = article.category or "general"

    return NewsArticle(
        id=article.id,
        headline=(article.headline or "").strip(),
        summary=_truncate(summary, limit),
        source=source,
        url=(article.url or "").strip(),
        image=article.image or None,
        datetime=float(article.datetime or 0),
        category=category,
        related_symbol=symbol if is_company_news else None,
        source_symbol_index=index,
    )


def dedup_key(article: RawNewsArticle) -> Tuple[str, str, str]:
    return (str(article.id), article.url or "", article.headline or "")


def round_robin_select(
    lists: Sequence[Sequence[T]],
    budget: int = DEFAULT_MAX_ARTICLES,
    max_rounds: Optional[int] = None,
) -> List[Tuple[int, int, T]]:
    """
    One item per list per round, lists visited in the given order, until
    `budget` items are taken or every list is exhausted.

    Returns (round, list_index, item) tuples in selection order.
    The input lists are never mutated; each list has its own cursor.
    """
    rounds = budget if max_rounds is None else max_rounds
    cursors = [0] * len(lists)
    picked: List[Tuple[int, int, T]] = []

    for rnd in range(rounds):
        progressed = False
        for i, items in enumerate(lists):
            if len(picked) >= budget:
                return picked
            if cursors[i] < len(items):
                picked.append((rnd, i, items[cursors[i]]))
                cursors[i] += 1
                progressed = True
        if not progressed:
            break
    return picked


# -----------------------------------------------------------------------------
# Aggregator
# -----------------------------------------------------------------------------
class NewsAggregator:
    def __init__(
        self,
        provider: MarketDataProvider,
        *,
        max_articles: int = DEFAULT_MAX_ARTICLES,
        window_days: int = DEFAULT_WINDOW_DAYS,
        dedup_cap: int = DEFAULT_DEDUP_CAP,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self.provider = provider
        self.max_articles = max(1, int(max_articles))
        self.window_days = max(1, int(window_days))
        self.dedup_cap = max(self.max_articles, int(dedup_cap))
        self._today = today or _utc_today

    def date_range(self) -> Tuple[str, str]:
        to = self._today()
        frm = to - timedelta(days=self.window_days)
        return frm.isoformat(), to.isoformat()

    async def _company_news(self, symbol: str, frm: str, to: str) -> List[RawNewsArticle]:
        outcome = await settle(
            self.provider.fetch(EndpointKind.COMPANY_NEWS, symbol=symbol, from_date=frm, to_date=to),
            [],
            symbol=symbol,
            kind=EndpointKind.COMPANY_NEWS,
        )
        valid = [a for a in outcome.value if validate_article(a)]
        dropped = len(outcome.value) - len(valid)
        if dropped:
            logger.debug("%s: dropped %d invalid articles", symbol, dropped)
        return valid

    async def _symbol_news(self, symbols: List[str]) -> List[NewsArticle]:
        frm, to = self.date_range()
        per_symbol = await asyncio.gather(*[self._company_news(s, frm, to) for s in symbols])

        picked = round_robin_select(per_symbol, budget=self.max_articles, max_rounds=self.max_articles)
        formatted = [
            format_article(a, is_company_news=True, symbol=symbols[i], index=rnd) for rnd, i, a in picked
        ]
        # stable: equal timestamps keep selection order
        return sorted(formatted, key=lambda a: a.datetime, reverse=True)

    async def _general_news(self) -> List[NewsArticle]:
        raw = await self.provider.fetch(EndpointKind.GENERAL_NEWS)

        seen: Set[Tuple[str, str, str]] = set()
        unique: List[RawNewsArticle] = []
        for a in raw:
            if len(unique) >= self.dedup_cap:
                break
            if not validate_article(a):
                continue
            k = dedup_key(a)
            if k in seen:
                continue
            seen.add(k)
            unique.append(a)

        return [format_article(a, is_company_news=False, index=i) for i, a in enumerate(unique[: self.max_articles])]

    async def get_news(self, symbols: Optional[Iterable[str]] = None) -> List[NewsArticle]:
        require_configured(self.provider)

        syms = normalize_symbols(symbols)
        if syms:
            articles = await self._symbol_news(syms)
            if articles:
                return articles
            logger.info("no company news for %d symbols, falling back to general news", len(syms))

        return await self._general_news()


__all__ = [
    "NewsAggregator",
    "dedup_key",
    "format_article",
    "round_robin_select",
    "validate_article",
]
