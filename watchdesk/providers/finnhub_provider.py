# watchdesk/providers/finnhub_provider.py
"""
watchdesk/providers/finnhub_provider.py
------------------------------------------------------------
Finnhub Provider v1.0.0

- ✅ Uses FINNHUB_API_KEY (aliases FINNHUB_API_TOKEN / FINNHUB_TOKEN via Settings)
- ✅ Standard query param token=<...>
- ✅ One AsyncClient per provider instance (reused) + aclose hook
- ✅ One GET per call: no retry, no backoff (callers decide what a failure means)
- ✅ Detects Finnhub "zero payload" for invalid symbols (c=o=h=l=pc=0)
- ✅ Typed decode: Quote / Profile / Metric / List[SearchResult] / List[RawNewsArticle]
- ✅ CachedFinnhubClient: per-kind TTL over a shared ResponseCache

Errors
- missing token          -> ConfigurationError
- non-2xx / transport    -> ProviderError(status, body, kind)
- unexpected body shape  -> ProviderError(status, body, kind)
"""

from __future__ import annotations

import enum
import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx
from pydantic import ValidationError

from watchdesk.cache import ResponseCache
from watchdesk.errors import ConfigurationError, ProviderError
from watchdesk.schemas import Metric, Profile, Quote, RawNewsArticle, SearchResult

logger = logging.getLogger("watchdesk.providers.finnhub_provider")

PROVIDER_VERSION = "1.0.0"
PROVIDER_NAME = "finnhub"

DEFAULT_BASE_URL = "https://finnhub.io/api/v1"
DEFAULT_TIMEOUT_SEC = 8.0
USER_AGENT_DEFAULT = "Watchdesk/0.1"


class EndpointKind(str, enum.Enum):
    QUOTE = "quote"
    PROFILE = "profile"
    METRIC = "metric"
    SEARCH = "search"
    COMPANY_NEWS = "company_news"
    GENERAL_NEWS = "general_news"


_PATHS: Dict[EndpointKind, str] = {
    EndpointKind.QUOTE: "/quote",
    EndpointKind.PROFILE: "/stock/profile2",
    EndpointKind.METRIC: "/stock/metric",
    EndpointKind.SEARCH: "/search",
    EndpointKind.COMPANY_NEWS: "/company-news",
    EndpointKind.GENERAL_NEWS: "/news",
}

# Fixed query params per endpoint
_FIXED_PARAMS: Dict[EndpointKind, Dict[str, str]] = {
    EndpointKind.METRIC: {"metric": "all"},
    EndpointKind.GENERAL_NEWS: {"category": "general"},
}


# -----------------------------------------------------------------------------
# Numeric helpers
# -----------------------------------------------------------------------------
def _to_float(x: Any) -> Optional[float]:
    if x is None or isinstance(x, bool):
        return None
    try:
        s = str(x).strip()
        if s == "":
            return None
        f = float(s)
    except (TypeError, ValueError):
        return None
    if math.isnan(f) or math.isinf(f):
        return None
    return f


def _to_str(x: Any) -> Optional[str]:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


def _quote_looks_empty(js: Mapping[str, Any]) -> bool:
    """
    Finnhub returns 0 for invalid/unknown symbols:
      {c:0, d:null, dp:null, h:0, l:0, o:0, pc:0, t:0}
    Treat that as empty.
    """
    keys = ("c", "h", "l", "o", "pc")
    vals = []
    for k in keys:
        f = _to_float(js.get(k))
        vals.append(0.0 if f is None else float(f))
    return all(v == 0.0 for v in vals)


# -----------------------------------------------------------------------------
# Decoders (raw JSON -> typed records)
# -----------------------------------------------------------------------------
def _expect_dict(js: Any, kind: EndpointKind, status: int) -> Dict[str, Any]:
    if not isinstance(js, dict):
        raise ProviderError(status, f"unexpected payload type {type(js).__name__}", kind.value)
    return js


def decode_quote(js: Mapping[str, Any]) -> Quote:
    """
    Finnhub quote endpoint:
      c=current, d=change, dp=percent change, h=high, l=low, o=open, pc=prev close, t=timestamp
    """
    if _quote_looks_empty(js):
        return Quote()
    return Quote(
        current_price=_to_float(js.get("c")),
        change=_to_float(js.get("d")),
        change_percent=_to_float(js.get("dp")),
        high=_to_float(js.get("h")),
        low=_to_float(js.get("l")),
        open=_to_float(js.get("o")),
        previous_close=_to_float(js.get("pc")),
        timestamp=_to_float(js.get("t")),
    )


def decode_profile(js: Mapping[str, Any]) -> Profile:
    # marketCapitalization is reported in millions
    return Profile(
        company_name=_to_str(js.get("name")),
        market_cap_millions=_to_float(js.get("marketCapitalization")),
        shares_outstanding=_to_float(js.get("shareOutstanding")),
        exchange=_to_str(js.get("exchange")),
        ticker=_to_str(js.get("ticker")),
    )


def decode_metric(js: Mapping[str, Any]) -> Metric:
    m = js.get("metric")
    if not isinstance(m, dict):
        return Metric()
    return Metric(
        pe_ratio_annual=_to_float(m.get("peNormalizedAnnual")),
        market_cap_millions=_to_float(m.get("marketCapitalization")),
    )


def decode_search(js: Mapping[str, Any]) -> List[SearchResult]:
    items = js.get("result")
    if not isinstance(items, list):
        return []
    out: List[SearchResult] = []
    for item in items:
        if not isinstance(item, dict) or not _to_str(item.get("symbol")):
            continue
        try:
            out.append(SearchResult.model_validate(item))
        except ValidationError:
            logger.debug("dropping malformed search result: %r", item)
    return out


def decode_news(js: List[Any]) -> List[RawNewsArticle]:
    out: List[RawNewsArticle] = []
    for item in js:
        if not isinstance(item, dict):
            continue
        try:
            out.append(RawNewsArticle.model_validate(item))
        except ValidationError:
            logger.debug("dropping malformed news item id=%r", item.get("id"))
    return out


# -----------------------------------------------------------------------------
# Client
# -----------------------------------------------------------------------------
class FinnhubClient:
    """Thin async Finnhub client: one request per fetch, typed result."""

    def __init__(
        self,
        token: Optional[str],
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        ua: str = USER_AGENT_DEFAULT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._token = (token or "").strip() or None
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        t = timeout if timeout and timeout > 0 else DEFAULT_TIMEOUT_SEC
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(t, connect=min(10.0, t)),
            follow_redirects=True,
            headers=self._get_headers(ua),
            transport=transport,
        )
        logger.info("Finnhub client init v%s | base=%s | timeout=%.1fs", PROVIDER_VERSION, self.base_url, t)

    @staticmethod
    def _get_headers(ua: str) -> Dict[str, str]:
        return {
            "User-Agent": ua or USER_AGENT_DEFAULT,
            "Accept": "application/json,text/plain,*/*",
            "Accept-Language": "en-US,en;q=0.8",
        }

    @property
    def configured(self) -> bool:
        return self._token is not None

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, kind: EndpointKind, params: Mapping[str, Any]) -> Tuple[int, Any]:
        if not self._token:
            raise ConfigurationError("finnhub: not configured (FINNHUB_API_KEY)")

        url = f"{self.base_url}{_PATHS[kind]}"
        q: Dict[str, Any] = dict(_FIXED_PARAMS.get(kind, {}))
        q.update({k: v for k, v in params.items() if v is not None})
        q["token"] = self._token

        try:
            r = await self._client.get(url, params=q)
        except httpx.HTTPError as exc:
            raise ProviderError(None, str(exc) or exc.__class__.__name__, kind.value) from exc

        if not (200 <= r.status_code < 300):
            raise ProviderError(r.status_code, r.text, kind.value)

        try:
            return r.status_code, r.json()
        except ValueError as exc:
            raise ProviderError(r.status_code, f"invalid JSON: {r.text[:120]}", kind.value) from exc

    async def fetch(self, kind: EndpointKind, **params: Any) -> Any:
        """
        Fetch one endpoint and decode it.

        QUOTE/PROFILE/METRIC take symbol=..., SEARCH takes q=...,
        COMPANY_NEWS takes symbol/from_date/to_date (ISO dates), GENERAL_NEWS takes nothing.
        """
        wire = dict(params)
        if kind is EndpointKind.COMPANY_NEWS:
            wire["from"] = wire.pop("from_date", None)
            wire["to"] = wire.pop("to_date", None)

        status, js = await self._get_json(kind, wire)

        if kind is EndpointKind.QUOTE:
            return decode_quote(_expect_dict(js, kind, status))
        if kind is EndpointKind.PROFILE:
            return decode_profile(_expect_dict(js, kind, status))
        if kind is EndpointKind.METRIC:
            return decode_metric(_expect_dict(js, kind, status))
        if kind is EndpointKind.SEARCH:
            return decode_search(_expect_dict(js, kind, status))

        if not isinstance(js, list):
            raise ProviderError(status, f"unexpected payload type {type(js).__name__}", kind.value)
        return decode_news(js)


class CachedFinnhubClient:
    """FinnhubClient behind a ResponseCache, keyed by (kind, sorted params)."""

    def __init__(
        self,
        client: FinnhubClient,
        cache: ResponseCache,
        ttls: Mapping[EndpointKind, float],
    ) -> None:
        self.client = client
        self.cache = cache
        self.ttls: Dict[EndpointKind, float] = dict(ttls)

    @property
    def configured(self) -> bool:
        return self.client.configured

    @staticmethod
    def cache_key(kind: EndpointKind, params: Mapping[str, Any]) -> Tuple[Any, ...]:
        return (kind.value,) + tuple(sorted((k, str(v)) for k, v in params.items()))

    async def fetch(self, kind: EndpointKind, **params: Any) -> Any:
        key = self.cache_key(kind, params)
        ttl = float(self.ttls.get(kind, 0.0))
        return await self.cache.get_or_compute(key, ttl, lambda: self.client.fetch(kind, **params))

    async def aclose(self) -> None:
        await self.client.aclose()


def ttls_from_settings(settings: Any) -> Dict[EndpointKind, float]:
    return {
        EndpointKind.QUOTE: float(settings.quote_ttl_sec),
        EndpointKind.PROFILE: float(settings.profile_ttl_sec),
        EndpointKind.METRIC: float(settings.metric_ttl_sec),
        EndpointKind.SEARCH: float(settings.search_ttl_sec),
        EndpointKind.COMPANY_NEWS: float(settings.company_news_ttl_sec),
        EndpointKind.GENERAL_NEWS: float(settings.general_news_ttl_sec),
    }


__all__ = [
    "CachedFinnhubClient",
    "EndpointKind",
    "FinnhubClient",
    "PROVIDER_NAME",
    "PROVIDER_VERSION",
    "decode_metric",
    "decode_news",
    "decode_profile",
    "decode_quote",
    "decode_search",
    "ttls_from_settings",
]
