# watchdesk/config.py
"""
watchdesk/config.py
============================================================
Canonical Settings for watchdesk

✅ Single source of truth for env vars.
✅ No network at import-time. No side effects at import-time.
✅ Provider token aliases accepted (FINNHUB_API_KEY / FINNHUB_API_TOKEN / FINNHUB_TOKEN).

Cache TTLs are per endpoint kind:
  quote 60s | profile 3600s | metric 3600s | search 1800s | news 300s
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_TRUTHY = {"1", "true", "yes", "y", "on", "t"}
_FALSY = {"0", "false", "no", "n", "off", "f"}

DEFAULT_POPULAR_SYMBOLS = (
    "AAPL,MSFT,GOOGL,AMZN,TSLA,META,NVDA,NFLX,ORCL,CRM,"
    "ADBE,INTC,AMD,PYPL,UBER,SPOT,SHOP,ROKU"
)


def _to_bool(v: Any, default: bool = False) -> bool:
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in _TRUTHY:
        return True
    if s in _FALSY:
        return False
    return default


def _to_int(v: Any, default: int) -> int:
    try:
        if v is None or str(v).strip() == "":
            return default
        return int(str(v).strip())
    except (TypeError, ValueError):
        return default


def _to_float(v: Any, default: float) -> float:
    try:
        if v is None or str(v).strip() == "":
            return default
        return float(str(v).strip())
    except (TypeError, ValueError):
        return default


def _positive_float(v: Any, default: float) -> float:
    x = _to_float(v, default)
    return x if x > 0 else default


def _positive_int(v: Any, default: int) -> int:
    x = _to_int(v, default)
    return x if x > 0 else default


def _csv(v: Any, *, upper: bool = False) -> List[str]:
    if v is None:
        return []
    s = str(v).strip()
    if not s:
        return []
    parts = [p.strip() for p in s.split(",") if p.strip()]
    return [p.upper() for p in parts] if upper else parts


def _mask_tail(s: Optional[str], keep: int = 4) -> str:
    x = (s or "").strip()
    if not x:
        return ""
    if len(x) <= keep:
        return "•" * len(x)
    return ("•" * (len(x) - keep)) + x[-keep:]


class Settings(BaseSettings):
    """
    Env-backed settings model.
    Field aliases accept both the canonical names and the legacy token names.
    """

    model_config = SettingsConfigDict(extra="ignore", case_sensitive=False)

    # ---------------------------------------------------------------------
    # App / Meta
    # ---------------------------------------------------------------------
    service_name: str = Field(default="Watchdesk API", validation_alias=AliasChoices("SERVICE_NAME", "APP_NAME"))
    service_version: str = Field(
        default="0.1.0",
        validation_alias=AliasChoices("SERVICE_VERSION", "APP_VERSION", "VERSION"),
    )
    environment: str = Field(default="production", validation_alias=AliasChoices("ENVIRONMENT", "APP_ENV", "ENV"))
    debug: bool = Field(default=False, validation_alias=AliasChoices("DEBUG"))
    log_level: str = Field(default="info", validation_alias=AliasChoices("LOG_LEVEL"))
    log_format: str = Field(default="text", validation_alias=AliasChoices("LOG_FORMAT"))
    log_enable_file: bool = Field(default=False, validation_alias=AliasChoices("LOG_ENABLE_FILE"))

    # ---------------------------------------------------------------------
    # Provider (Finnhub)
    # ---------------------------------------------------------------------
    finnhub_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FINNHUB_API_KEY", "FINNHUB_API_TOKEN", "FINNHUB_TOKEN"),
    )
    finnhub_base_url: str = Field(default="https://finnhub.io/api/v1", validation_alias=AliasChoices("FINNHUB_BASE_URL"))
    finnhub_ua: str = Field(default="Watchdesk/0.1", validation_alias=AliasChoices("FINNHUB_UA"))
    http_timeout: float = Field(default=8.0, validation_alias=AliasChoices("HTTP_TIMEOUT_SEC", "HTTP_TIMEOUT"))

    # ---------------------------------------------------------------------
    # Cache tuning (seconds)
    # ---------------------------------------------------------------------
    quote_ttl_sec: float = Field(default=60.0, validation_alias=AliasChoices("QUOTE_TTL_SEC"))
    profile_ttl_sec: float = Field(default=3600.0, validation_alias=AliasChoices("PROFILE_TTL_SEC"))
    metric_ttl_sec: float = Field(default=3600.0, validation_alias=AliasChoices("METRIC_TTL_SEC"))
    search_ttl_sec: float = Field(default=1800.0, validation_alias=AliasChoices("SEARCH_TTL_SEC"))
    company_news_ttl_sec: float = Field(default=300.0, validation_alias=AliasChoices("COMPANY_NEWS_TTL_SEC"))
    general_news_ttl_sec: float = Field(default=300.0, validation_alias=AliasChoices("GENERAL_NEWS_TTL_SEC"))
    cache_max_size: int = Field(default=5000, validation_alias=AliasChoices("CACHE_MAX_SIZE"))

    # ---------------------------------------------------------------------
    # News selection
    # ---------------------------------------------------------------------
    news_max_articles: int = Field(default=6, validation_alias=AliasChoices("NEWS_MAX_ARTICLES"))
    news_window_days: int = Field(default=5, validation_alias=AliasChoices("NEWS_WINDOW_DAYS"))
    news_dedup_cap: int = Field(default=20, validation_alias=AliasChoices("NEWS_DEDUP_CAP"))

    # ---------------------------------------------------------------------
    # Search
    # ---------------------------------------------------------------------
    search_max_results: int = Field(default=15, validation_alias=AliasChoices("SEARCH_MAX_RESULTS"))
    popular_symbols_raw: str = Field(default=DEFAULT_POPULAR_SYMBOLS, validation_alias=AliasChoices("POPULAR_SYMBOLS"))

    # ---------------------------------------------------------------------
    # CORS
    # ---------------------------------------------------------------------
    enable_cors_all_origins: bool = Field(
        default=True,
        validation_alias=AliasChoices("ENABLE_CORS_ALL_ORIGINS", "CORS_ALL_ORIGINS"),
    )
    cors_origins: str = Field(default="*", validation_alias=AliasChoices("CORS_ORIGINS"))

    # ---------------------------------------------------------------------
    # Derived helpers
    # ---------------------------------------------------------------------
    @property
    def finnhub_api_token(self) -> Optional[str]:
        return (self.finnhub_api_key or "").strip() or None

    @property
    def provider_configured(self) -> bool:
        return self.finnhub_api_token is not None

    @property
    def popular_symbols(self) -> List[str]:
        return _csv(self.popular_symbols_raw, upper=True)

    @property
    def cors_origins_list(self) -> List[str]:
        if bool(self.enable_cors_all_origins):
            return ["*"]
        s = (self.cors_origins or "").strip()
        if not s or s == "*":
            return ["*"]
        return [x.strip() for x in s.split(",") if x.strip()]

    def as_safe_dict(self) -> Dict[str, Any]:
        return {
            "service_name": self.service_name,
            "service_version": self.service_version,
            "environment": self.environment,
            "debug": bool(self.debug),
            "log_level": self.log_level,
            "log_format": self.log_format,
            "finnhub_base_url": self.finnhub_base_url,
            "finnhub_key_set": self.provider_configured,
            "finnhub_key_mask": _mask_tail(self.finnhub_api_key, keep=4),
            "http_timeout_sec": float(self.http_timeout),
            "ttl_sec": {
                "quote": float(self.quote_ttl_sec),
                "profile": float(self.profile_ttl_sec),
                "metric": float(self.metric_ttl_sec),
                "search": float(self.search_ttl_sec),
                "company_news": float(self.company_news_ttl_sec),
                "general_news": float(self.general_news_ttl_sec),
            },
            "cache_max_size": int(self.cache_max_size),
            "news": {
                "max_articles": int(self.news_max_articles),
                "window_days": int(self.news_window_days),
                "dedup_cap": int(self.news_dedup_cap),
            },
            "search_max_results": int(self.search_max_results),
            "popular_symbols": self.popular_symbols,
            "cors_origins_list": self.cors_origins_list,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    s = Settings()

    # Normalize (strings)
    s.log_level = (s.log_level or "info").strip().lower()
    s.log_format = (s.log_format or "text").strip().lower()
    s.environment = (s.environment or "production").strip()
    s.finnhub_base_url = (s.finnhub_base_url or "").strip().rstrip("/") or "https://finnhub.io/api/v1"

    # Normalize (ints)
    s.cache_max_size = _positive_int(s.cache_max_size, 5000)
    s.news_max_articles = _positive_int(s.news_max_articles, 6)
    s.news_window_days = _positive_int(s.news_window_days, 5)
    s.news_dedup_cap = max(_positive_int(s.news_dedup_cap, 20), s.news_max_articles)
    s.search_max_results = _positive_int(s.search_max_results, 15)

    # Normalize (floats)
    s.http_timeout = _positive_float(s.http_timeout, 8.0)
    s.quote_ttl_sec = _positive_float(s.quote_ttl_sec, 60.0)
    s.profile_ttl_sec = _positive_float(s.profile_ttl_sec, 3600.0)
    s.metric_ttl_sec = _positive_float(s.metric_ttl_sec, 3600.0)
    s.search_ttl_sec = _positive_float(s.search_ttl_sec, 1800.0)
    s.company_news_ttl_sec = _positive_float(s.company_news_ttl_sec, 300.0)
    s.general_news_ttl_sec = _positive_float(s.general_news_ttl_sec, 300.0)

    s.debug = _to_bool(s.debug, False)
    s.log_enable_file = _to_bool(s.log_enable_file, False)
    s.enable_cors_all_origins = _to_bool(s.enable_cors_all_origins, True)
    return s


__all__ = ["Settings", "get_settings"]
