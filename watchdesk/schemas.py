# watchdesk/schemas.py
"""
watchdesk/schemas.py
===========================================================
Records shared by providers, the enrichment/news pipeline and the routers.

Design rules
✅ Import-safe: no engine or provider imports.
✅ Provider records keep every field optional: absent means "no data".
✅ NewsArticle is frozen once produced.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

AlertType = Literal["upper", "lower"]
AlertCadence = Literal["once", "daily", "weekly"]


def normalize_symbol(symbol: str) -> str:
    return (symbol or "").strip().upper()


def normalize_symbols(symbols: Optional[Iterable[str]]) -> List[str]:
    """Uppercase, strip, drop blanks and case-insensitive duplicates (first seen wins)."""
    out: List[str] = []
    seen = set()
    for s in symbols or []:
        sym = normalize_symbol(str(s or ""))
        if not sym or sym in seen:
            continue
        seen.add(sym)
        out.append(sym)
    return out


# =============================================================================
# Provider records
# =============================================================================
class Quote(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current_price: Optional[float] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    open: Optional[float] = None
    previous_close: Optional[float] = None
    timestamp: Optional[float] = None


class Profile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    company_name: Optional[str] = None
    market_cap_millions: Optional[float] = None
    shares_outstanding: Optional[float] = None
    exchange: Optional[str] = None
    ticker: Optional[str] = None


class Metric(BaseModel):
    model_config = ConfigDict(extra="ignore")

    pe_ratio_annual: Optional[float] = None
    market_cap_millions: Optional[float] = None


class SearchResult(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    symbol: str
    description: str = ""
    display_symbol: str = Field(default="", validation_alias="displaySymbol")
    type: str = ""


class StockSearchHit(BaseModel):
    symbol: str
    name: str
    exchange: str
    type: str
    is_in_watchlist: bool = False


class RawNewsArticle(BaseModel):
    """An article exactly as a provider returned it (pre-validation)."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    category: Optional[str] = None
    headline: Optional[str] = None
    summary: Optional[str] = None
    source: Optional[str] = None
    url: Optional[str] = None
    image: Optional[str] = None
    datetime: Optional[float] = None
    related: Optional[str] = None


class NewsArticle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[Union[int, str]] = None
    headline: str
    summary: str
    source: str
    url: str
    image: Optional[str] = None
    datetime: float
    category: str = "general"
    related_symbol: Optional[str] = None
    source_symbol_index: Optional[int] = None


# =============================================================================
# Derived view records
# =============================================================================
class EnrichedStock(BaseModel):
    symbol: str
    company: str
    added_at: Optional[datetime] = None

    current_price: Optional[float] = None
    change_percent: Optional[float] = None
    market_cap_value: Optional[float] = None
    pe_ratio_value: Optional[float] = None

    price_formatted: str = "N/A"
    change_formatted: str = "N/A"
    market_cap: str = "N/A"
    pe_ratio: str = "N/A"


class WatchlistEntry(BaseModel):
    user_id: str
    symbol: str
    company: str = ""
    added_at: Optional[datetime] = None

    @field_validator("symbol")
    @classmethod
    def _upper_symbol(cls, v: str) -> str:
        sym = normalize_symbol(v)
        if not sym:
            raise ValueError("symbol must not be empty")
        return sym


class AlertRecord(BaseModel):
    id: str
    user_id: str
    symbol: str
    company: str
    alert_name: str
    alert_type: AlertType
    threshold: float = Field(gt=0)
    cadence: AlertCadence = "once"
    is_active: bool = True
    created_at: Optional[datetime] = None
    last_triggered: Optional[datetime] = None

    @field_validator("symbol")
    @classmethod
    def _upper_symbol(cls, v: str) -> str:
        sym = normalize_symbol(v)
        if not sym:
            raise ValueError("symbol must not be empty")
        return sym

    @field_validator("company", "alert_name")
    @classmethod
    def _strip(cls, v: str) -> str:
        s = (v or "").strip()
        if not s:
            raise ValueError("must not be empty")
        return s


class EnrichedAlert(BaseModel):
    id: str
    symbol: str
    company: str
    alert_name: str
    alert_type: AlertType
    threshold: float
    cadence: AlertCadence
    is_active: bool

    current_price: Optional[float] = None
    change_percent: Optional[float] = None
    price_formatted: str = "N/A"
    change_formatted: str = "N/A"
    condition: str = ""


class WatchlistView(BaseModel):
    symbols: List[str] = Field(default_factory=list)
    stocks: List[EnrichedStock] = Field(default_factory=list)
    alerts: List[EnrichedAlert] = Field(default_factory=list)
    news: List[NewsArticle] = Field(default_factory=list)


class NewsDigest(BaseModel):
    email: str
    symbols: List[str] = Field(default_factory=list)
    news: List[NewsArticle] = Field(default_factory=list)
    error: Optional[str] = None


__all__ = [
    "AlertCadence",
    "AlertRecord",
    "AlertType",
    "EnrichedAlert",
    "EnrichedStock",
    "Metric",
    "NewsArticle",
    "NewsDigest",
    "Profile",
    "Quote",
    "RawNewsArticle",
    "SearchResult",
    "StockSearchHit",
    "WatchlistEntry",
    "WatchlistView",
    "normalize_symbol",
    "normalize_symbols",
]
