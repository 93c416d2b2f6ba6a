"""Shared fakes: a scriptable market-data provider and a manual clock."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, List, Tuple

import pytest

from watchdesk.config import Settings
from watchdesk.errors import ProviderError
from watchdesk.providers.finnhub_provider import EndpointKind
from watchdesk.schemas import RawNewsArticle


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider:
    """
    Answers fetch(kind, **params) from per-kind handlers.

    A handler is called with the request params; whatever it returns is the
    result, whatever it raises propagates. Unscripted kinds raise ProviderError.
    """

    def __init__(self, configured: bool = True) -> None:
        self.configured = configured
        self.handlers: Dict[EndpointKind, Callable[..., Any]] = {}
        self.calls: List[Tuple[EndpointKind, Dict[str, Any]]] = []

    def on(self, kind: EndpointKind, handler: Callable[..., Any]) -> "FakeProvider":
        self.handlers[kind] = handler
        return self

    def calls_for(self, kind: EndpointKind) -> List[Dict[str, Any]]:
        return [p for k, p in self.calls if k is kind]

    async def fetch(self, kind: EndpointKind, **params: Any) -> Any:
        self.calls.append((kind, dict(params)))
        handler = self.handlers.get(kind)
        if handler is None:
            raise ProviderError(500, "unscripted", kind.value)
        return handler(**params)


def raise_provider_error(status: int = 500) -> Callable[..., Any]:
    def _handler(**params: Any) -> Any:
        raise ProviderError(status, "boom", "test")

    return _handler


def make_article(n: int, *, prefix: str = "A", ts: float = 0.0, **overrides: Any) -> RawNewsArticle:
    data: Dict[str, Any] = {
        "id": n,
        "category": "company",
        "headline": f"{prefix} headline {n}",
        "summary": f"{prefix} summary {n}",
        "source": "Reuters",
        "url": f"https://news.example.com/{prefix.lower()}/{n}",
        "image": "",
        "datetime": ts or 1_700_000_000 + n,
        "related": prefix,
    }
    data.update(overrides)
    return RawNewsArticle(**data)


def feeds_by_symbol(feeds: Dict[str, List[RawNewsArticle]]) -> Callable[..., Any]:
    by_sym = defaultdict(list, feeds)

    def _handler(symbol: str, **params: Any) -> List[RawNewsArticle]:
        return list(by_sym[symbol])

    return _handler


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def settings() -> Settings:
    return Settings(FINNHUB_API_KEY="test-token", LOG_LEVEL="debug")
