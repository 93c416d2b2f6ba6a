# watchdesk/errors.py
"""
watchdesk/errors.py
------------------------------------------------------------
Error taxonomy for the market-data pipeline.

- ConfigurationError : required credential missing. Fatal for the whole call.
- ProviderError      : one upstream call failed (non-2xx or transport).
                       Recovered inside per-symbol fan-outs, surfaced when it
                       was the only call an operation made.
"""

from __future__ import annotations

from typing import Optional


class WatchdeskError(Exception):
    """Base class for errors raised by watchdesk."""


class ConfigurationError(WatchdeskError):
    pass


class ProviderError(WatchdeskError):
    def __init__(self, status: Optional[int], body: str = "", kind: str = "") -> None:
        self.status = status
        self.body = body or ""
        self.kind = kind or ""
        where = f"{kind}: " if kind else ""
        code = f"HTTP {status}" if status is not None else "transport error"
        super().__init__(f"{where}{code} {self.body[:200]}".strip())


__all__ = ["WatchdeskError", "ConfigurationError", "ProviderError"]
