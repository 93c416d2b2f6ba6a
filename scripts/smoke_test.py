#!/usr/bin/env python3
# scripts/smoke_test.py
"""
smoke_test.py
===========================================================
SMOKE TESTER for the Watchdesk API - v1.0.0

✅ Highlights
- Base URL via env: WATCHDESK_BASE_URL (default http://127.0.0.1:8000)
- Liveness: GET / + HEAD / + /healthz (critical) + /health (soft)
- Market data: /v1/quotes, /v1/news (symbol + general), /v1/search (query + popular)
- Optional watchlist view: --user <id>
- 503 (FINNHUB_API_KEY missing on the server) is reported, not treated as a crash
- Exits non-zero if critical connectivity fails (GET / or GET /healthz)

Usage:
  python scripts/smoke_test.py
  WATCHDESK_BASE_URL=https://your.host python scripts/smoke_test.py --symbols AAPL,MSFT
  python scripts/smoke_test.py --user u1 --strict
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests

# -----------------------------------------------------------------------------
# ENV
# -----------------------------------------------------------------------------
DEFAULT_BASE_URL = (os.getenv("WATCHDESK_BASE_URL") or "http://127.0.0.1:8000").rstrip("/")
DEFAULT_SYMBOLS = (os.getenv("WATCHDESK_TEST_SYMBOLS", "AAPL,MSFT") or "AAPL,MSFT").strip().upper()

TIMEOUT_SHORT = float(os.getenv("WATCHDESK_TIMEOUT_SHORT", "15") or "15")
TIMEOUT_MED = float(os.getenv("WATCHDESK_TIMEOUT_MED", "30") or "30")

USER_AGENT = "Watchdesk-EndpointTester/1.0.0"


# -----------------------------------------------------------------------------
# Colors (auto-disable if NO_COLOR or not a TTY)
# -----------------------------------------------------------------------------
def _colors_enabled() -> bool:
    if os.getenv("NO_COLOR"):
        return False
    return sys.stdout.isatty()


_USE_COLOR = _colors_enabled()


class C:
    HEADER = "\033[95m" if _USE_COLOR else ""
    OKBLUE = "\033[94m" if _USE_COLOR else ""
    OKGREEN = "\033[92m" if _USE_COLOR else ""
    WARNING = "\033[93m" if _USE_COLOR else ""
    FAIL = "\033[91m" if _USE_COLOR else ""
    ENDC = "\033[0m" if _USE_COLOR else ""


def log(msg: str, typ: str = "info") -> None:
    tags = {
        "info": (C.OKBLUE, "[INFO]"),
        "success": (C.OKGREEN, "[PASS]"),
        "warn": (C.WARNING, "[WARN]"),
        "fail": (C.FAIL, "[FAIL]"),
    }
    if typ == "header":
        print(f"\n{C.HEADER}--- {msg} ---{C.ENDC}")
    elif typ in tags:
        color, tag = tags[typ]
        print(f"{color}{tag}{C.ENDC} {msg}")
    else:
        print(msg)


def fmt_dt(dt: float) -> str:
    return f"{dt:.2f}s"


def safe_json(resp: requests.Response) -> Optional[Any]:
    try:
        return resp.json()
    except ValueError:
        return None


def json_pretty(obj: Any, limit: int = 2500) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False, default=str)[:limit]


def body_preview(resp: requests.Response, limit: int = 240) -> str:
    return (resp.text or "").replace("\r", " ").replace("\n", " ")[:limit]


@dataclass
class Result:
    endpoint: str
    ok: bool
    status_code: Optional[int]
    dt: float
    note: str = ""


def request_any(
    sess: requests.Session,
    method: str,
    url: str,
    *,
    timeout: float,
    params: Optional[Dict[str, Any]] = None,
) -> Tuple[Optional[requests.Response], float, Optional[str]]:
    t0 = time.time()
    try:
        r = sess.request(method, url, timeout=timeout, params=params)
        return r, time.time() - t0, None
    except requests.RequestException as e:
        return None, time.time() - t0, str(e)


# -----------------------------------------------------------------------------
# Checks
# -----------------------------------------------------------------------------
def check_server(sess: requests.Session, base_url: str) -> Tuple[bool, List[Result]]:
    log("Checking Server Connectivity...", "header")
    results: List[Result] = []

    for method, ep, critical in (("GET", "/", True), ("HEAD", "/", False), ("GET", "/healthz", True)):
        r, dt, err = request_any(sess, method, f"{base_url}{ep}", timeout=TIMEOUT_SHORT)
        name = f"{method} {ep}"
        if err or r is None:
            results.append(Result(ep, False, None, dt, err or "unknown"))
            log(f"{name} -> Cannot connect: {err}", "fail" if critical else "warn")
            if critical:
                return False, results
            continue
        if r.status_code == 200:
            results.append(Result(ep, True, r.status_code, dt))
            log(f"{name} -> OK ({fmt_dt(dt)})", "success")
        else:
            results.append(Result(ep, False, r.status_code, dt, body_preview(r, 200)))
            log(f"{name} -> HTTP {r.status_code} ({fmt_dt(dt)}) | body={body_preview(r, 200)!r}", "fail" if critical else "warn")
            if critical:
                return False, results

    # GET /health (soft)
    r, dt, err = request_any(sess, "GET", f"{base_url}/health", timeout=TIMEOUT_SHORT)
    if err or r is None:
        log(f"GET /health -> Exception: {err}", "warn")
    elif r.status_code == 200:
        j = safe_json(r) or {}
        configured = j.get("provider_configured")
        log(f"GET /health -> {j.get('status')} ({fmt_dt(dt)}) v={j.get('version')} provider_configured={configured}", "success")
        if configured is False:
            log("FINNHUB_API_KEY is not set on the server: market-data checks will answer 503", "warn")
    else:
        log(f"GET /health -> HTTP {r.status_code} ({fmt_dt(dt)})", "warn")

    return True, results


def check_json_endpoint(
    sess: requests.Session,
    base_url: str,
    ep: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    strict: bool,
) -> Optional[Dict[str, Any]]:
    label = ep if not params else f"{ep}?{'&'.join(f'{k}={v}' for k, v in params.items())}"
    r, dt, err = request_any(sess, "GET", f"{base_url}{ep}", timeout=TIMEOUT_MED, params=params)
    if err or r is None:
        log(f"{label.ljust(40)} -> Exception: {err}", "fail")
        return None

    data = safe_json(r)
    if r.status_code == 200 and isinstance(data, dict):
        log(f"{label.ljust(40)} -> {data.get('status')} ({fmt_dt(dt)}) count={data.get('count')}", "success")
        return data
    if r.status_code == 503:
        log(f"{label.ljust(40)} -> 503 provider not configured ({fmt_dt(dt)})", "fail" if strict else "warn")
        return None
    if r.status_code == 502:
        detail = (data or {}).get("detail") if isinstance(data, dict) else body_preview(r)
        log(f"{label.ljust(40)} -> 502 upstream failure ({fmt_dt(dt)}) | {detail}", "fail" if strict else "warn")
        return None

    log(f"{label.ljust(40)} -> HTTP {r.status_code} ({fmt_dt(dt)}) | body={body_preview(r)!r}", "fail")
    return None


def check_market_data(sess: requests.Session, base_url: str, symbols: str, *, strict: bool) -> None:
    log(f"Testing Market Data ({symbols})", "header")

    quotes = check_json_endpoint(sess, base_url, "/v1/quotes", params={"symbols": symbols}, strict=strict)
    if quotes:
        for sym, item in (quotes.get("items") or {}).items():
            log(f"  {sym.ljust(8)} price={item.get('price_formatted')} change={item.get('change_formatted')} "
                f"cap={item.get('market_cap')} pe={item.get('pe_ratio')}", "info")

    news = check_json_endpoint(sess, base_url, "/v1/news", params={"symbols": symbols}, strict=strict)
    if news:
        for a in news.get("items") or []:
            log(f"  [{a.get('related_symbol') or a.get('category')}] {str(a.get('headline'))[:80]}", "info")

    check_json_endpoint(sess, base_url, "/v1/news", strict=strict)
    check_json_endpoint(sess, base_url, "/v1/search", params={"q": symbols.split(",")[0]}, strict=strict)
    check_json_endpoint(sess, base_url, "/v1/search", strict=strict)


def check_watchlist(sess: requests.Session, base_url: str, user_id: str, *, strict: bool) -> None:
    log(f"Testing Watchlist View ({user_id})", "header")
    data = check_json_endpoint(sess, base_url, f"/v1/watchlist/{user_id}", strict=strict)
    if data:
        print(json_pretty({k: data.get(k) for k in ("symbols", "alerts")}))


def main() -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--base-url", default=DEFAULT_BASE_URL)
    p.add_argument("--symbols", default=DEFAULT_SYMBOLS, help="Comma-separated tickers")
    p.add_argument("--user", default="", help="Also fetch /v1/watchlist/<user>")
    p.add_argument("--strict", action="store_true", help="Treat 502/503 as failures")
    args = p.parse_args()

    base_url = str(args.base_url).rstrip("/")
    strict = bool(args.strict)

    print(f"{C.HEADER}WATCHDESK - ENDPOINT TESTER v1.0.0{C.ENDC}")
    print(f"BASE_URL={base_url} | SYMBOLS={args.symbols} | STRICT={'ON' if strict else 'OFF'}")

    sess = requests.Session()
    sess.headers.update({"Accept": "application/json", "User-Agent": USER_AGENT})

    ok, _ = check_server(sess, base_url)
    if not ok:
        print("\n❌ Cannot proceed (server connectivity failed).")
        return 2

    check_json_endpoint(sess, base_url, "/system/settings", strict=strict)
    check_market_data(sess, base_url, str(args.symbols).strip().upper(), strict=strict)
    if args.user:
        check_watchlist(sess, base_url, str(args.user).strip(), strict=strict)

    print("\n✅ Smoke test finished.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
