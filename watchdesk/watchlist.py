# watchdesk/watchlist.py
"""
watchdesk/watchlist.py
------------------------------------------------------------
Watchlist persistence interface + in-memory store + alert enrichment.

✅ Persistence is external: the engine only sees the WatchlistStore protocol.
✅ Symbols are stored uppercase; one entry per (user, symbol) case-insensitively.
✅ Alerts are decorated with current price/change only (no triggering).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from watchdesk.formatting import format_change_percent, format_price
from watchdesk.schemas import AlertRecord, EnrichedAlert, EnrichedStock, WatchlistEntry, normalize_symbol


class WatchlistStore(Protocol):
    async def list_entries(self, user_id: str) -> List[WatchlistEntry]: ...

    async def list_alerts(self, user_id: str) -> List[AlertRecord]: ...

    async def symbols_for_email(self, email: str) -> List[str]: ...


class InMemoryWatchlistStore:
    """Process-local store, used by tests and single-instance deployments."""

    def __init__(self) -> None:
        self._entries: Dict[str, List[WatchlistEntry]] = {}
        self._alerts: Dict[str, List[AlertRecord]] = {}
        self._users_by_email: Dict[str, str] = {}

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------
    def register_user(self, user_id: str, email: str) -> None:
        self._users_by_email[(email or "").strip().lower()] = user_id

    def add_entry(
        self,
        user_id: str,
        symbol: str,
        company: str = "",
        added_at: Optional[datetime] = None,
    ) -> WatchlistEntry:
        entry = WatchlistEntry(
            user_id=user_id,
            symbol=symbol,
            company=(company or "").strip(),
            added_at=added_at or datetime.now(timezone.utc),
        )
        rows = self._entries.setdefault(user_id, [])
        if any(r.symbol == entry.symbol for r in rows):
            raise ValueError(f"{entry.symbol} is already in the watchlist")
        rows.append(entry)
        return entry

    def remove_entry(self, user_id: str, symbol: str) -> bool:
        sym = normalize_symbol(symbol)
        rows = self._entries.get(user_id, [])
        kept = [r for r in rows if r.symbol != sym]
        self._entries[user_id] = kept
        return len(kept) != len(rows)

    def add_alert(self, alert: AlertRecord) -> AlertRecord:
        self._alerts.setdefault(alert.user_id, []).append(alert)
        return alert

    # -------------------------------------------------------------------------
    # WatchlistStore
    # -------------------------------------------------------------------------
    async def list_entries(self, user_id: str) -> List[WatchlistEntry]:
        return list(self._entries.get(user_id, []))

    async def list_alerts(self, user_id: str) -> List[AlertRecord]:
        return list(self._alerts.get(user_id, []))

    async def symbols_for_email(self, email: str) -> List[str]:
        user_id = self._users_by_email.get((email or "").strip().lower())
        if user_id is None:
            return []
        return [e.symbol for e in self._entries.get(user_id, [])]


def alert_condition(alert: AlertRecord) -> str:
    op = ">" if alert.alert_type == "upper" else "<"
    return f"{op} {format_price(alert.threshold)}"


def enrich_alerts(alerts: Sequence[AlertRecord], stocks: Mapping[str, EnrichedStock]) -> List[EnrichedAlert]:
    out: List[EnrichedAlert] = []
    for a in alerts:
        stock = stocks.get(a.symbol)
        price = stock.current_price if stock else None
        change = stock.change_percent if stock else None
        out.append(
            EnrichedAlert(
                id=a.id,
                symbol=a.symbol,
                company=a.company,
                alert_name=a.alert_name,
                alert_type=a.alert_type,
                threshold=a.threshold,
                cadence=a.cadence,
                is_active=a.is_active,
                current_price=price,
                change_percent=change,
                price_formatted=format_price(price),
                change_formatted=format_change_percent(change),
                condition=alert_condition(a),
            )
        )
    return out


__all__ = ["InMemoryWatchlistStore", "WatchlistStore", "alert_condition", "enrich_alerts"]
