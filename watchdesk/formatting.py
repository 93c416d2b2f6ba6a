"""
Display formatting for enriched quotes.

Every formatter returns the literal "N/A" for absent (None / NaN / inf) input.
"""

from __future__ import annotations

import math
from typing import Any, Optional

NA = "N/A"

_CAP_STEPS = (
    (1e12, "T"),
    (1e9, "B"),
    (1e6, "M"),
)


def safe_float(val: Any) -> Optional[float]:
    if val is None or isinstance(val, bool):
        return None
    try:
        f = float(val)
    except (TypeError, ValueError):
        return None
    if math.isnan(f) or math.isinf(f):
        return None
    return f


def format_price(value: Any) -> str:
    f = safe_float(value)
    if f is None:
        return NA
    sign = "-" if f < 0 else ""
    return f"{sign}${abs(f):,.2f}"


def format_change_percent(value: Any) -> str:
    f = safe_float(value)
    if f is None:
        return NA
    sign = "+" if f >= 0 else ""
    return f"{sign}{f:.2f}%"


def format_market_cap(value: Any) -> str:
    """2_500_000_000_000 -> "$2.5T"; 3e9 -> "$3.0B"; 1_234_000 -> "$1.23M"."""
    f = safe_float(value)
    if f is None or f <= 0:
        return NA
    f = round(f, 2)
    for i, (threshold, suffix) in enumerate(_CAP_STEPS):
        if f >= threshold:
            scaled = round(f / threshold, 2)
            # 999.996B rounds to 1000.00B: step up to T
            if scaled >= 1000 and i > 0:
                threshold, suffix = _CAP_STEPS[i - 1]
                scaled = round(f / threshold, 2)
            s = f"{scaled:.2f}"
            # 1-2 decimals: drop one trailing zero
            if s.endswith("0"):
                s = s[:-1]
            return f"${s}{suffix}"
    return f"${f:,.2f}"


def format_ratio(value: Any) -> str:
    f = safe_float(value)
    if f is None:
        return NA
    return f"{f:.2f}"


__all__ = [
    "NA",
    "format_change_percent",
    "format_market_cap",
    "format_price",
    "format_ratio",
    "safe_float",
]
