"""Shared test fixtures for Stockpilot.

Provides a scripted fake LLM client, a fake data service, and a provider
registry wired to them. No test talks to a real provider.
"""

from __future__ import annotations

import builtins
import json
import threading

import pytest

from stockpilot.llm.providers import ProviderProfile, ProviderRegistry
from stockpilot.orchestrator import Orchestrator, OrchestratorConfig
from stockpilot.session import InMemorySessionStore


# ------------------------------------------------------------------
# Response builders
# ------------------------------------------------------------------

def text_response(content: str | None = "Here is your answer.") -> dict:
    """Model response with plain text and no tool calls."""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def tool_call_response(*calls: tuple[str, dict], ids: list[str] | None = None, text: str = "") -> dict:
    """Model response requesting one tool call per ``(name, arguments)`` pair."""
    ids = ids or [f"call_{i}" for i in range(len(calls))]
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": text,
                    "tool_calls": [
                        {
                            "id": call_id,
                            "type": "function",
                            "function": {"name": name, "arguments": json.dumps(args)},
                        }
                        for call_id, (name, args) in zip(ids, calls)
                    ],
                }
            }
        ]
    }


# ------------------------------------------------------------------
# Fakes
# ------------------------------------------------------------------

class FakeLLMClient:
    """LLMClient that replays a script and records every call.

    Script entries are response dicts, exceptions (raised), or callables
    taking the recorded call and returning either. Once the script runs
    out, ``default`` is used; without one the client fails the test.
    """

    def __init__(self, script: list | None = None, *, default=None) -> None:
        self.script = list(script or [])
        self.default = default
        self.calls: list[dict] = []
        self.closed = False
        self._lock = threading.Lock()

    def chat(self, messages, *, model=None, tools=None, **kwargs) -> dict:
        call = {"messages": messages, "model": model, "tools": tools, "kwargs": kwargs}
        with self._lock:
            self.calls.append(call)
            step = self.script.pop(0) if self.script else self.default
        if step is None:
            raise AssertionError("FakeLLMClient script exhausted")
        if callable(step):
            step = step(call)
        if isinstance(step, BaseException):
            raise step
        return step

    def close(self) -> None:
        self.closed = True

    @property
    def models(self) -> list[str]:
        return [c["model"] for c in self.calls]


class FakeService:
    """Data service with a few canned research operations."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.release = threading.Event()
        self._lock = threading.Lock()

    def _record(self, name: str, **kwargs) -> None:
        with self._lock:
            self.calls.append((name, kwargs))

    def get_stock_price(self, symbol):
        self._record("get_stock_price", symbol=symbol)
        return {"symbol": symbol, "price": 187.5, "changePercent": "+1.20%"}

    def search_stock(self, query):
        self._record("search_stock", query=query)
        return [{"symbol": "AAPL", "name": "Apple Inc."}]

    def get_company_overview(self, symbol):
        self._record("get_company_overview", symbol=symbol)
        return {"symbol": symbol, "sector": "Technology", "peRatio": 29.4}

    def get_news_sentiment(self, symbol):
        self._record("get_news_sentiment", symbol=symbol)
        raise RuntimeError("news upstream unavailable")

    def get_price_history(self, symbol, range=None):
        self._record("get_price_history", symbol=symbol, range=range)
        return [{"day": i, "close": 100 + i} for i in builtins.range(200)]

    def screen_stocks(self, sector=None, market_cap_more_than=None, limit=None):
        self._record("screen_stocks", sector=sector, market_cap_more_than=market_cap_more_than)
        return {"success": True, "data": [{"symbol": "MSFT"}]}

    def get_peers(self, symbol):
        self._record("get_peers", symbol=symbol)
        self.release.wait(5)
        return ["AMD", "INTC"]


# ------------------------------------------------------------------
# Registry helpers
# ------------------------------------------------------------------

def make_profiles() -> list[ProviderProfile]:
    return [
        ProviderProfile(
            id="alpha",
            label="Alpha",
            models=("alpha-large", "alpha-small"),
            available=True,
            base_url="http://alpha.test",
            api_key="alpha-key",
        ),
        ProviderProfile(
            id="beta",
            label="Beta",
            models=("beta-1",),
            available=True,
            base_url="http://beta.test",
            api_key="beta-key",
        ),
    ]


def make_registry(client: FakeLLMClient) -> ProviderRegistry:
    """Registry whose providers all share ``client``."""
    registry = ProviderRegistry(make_profiles())
    for profile in registry.profiles:
        registry.register_client(profile.id, client)
    return registry


def make_orchestrator(
    client: FakeLLMClient,
    *,
    service: FakeService | None = None,
    store: InMemorySessionStore | None = None,
    router=None,
    **config_kwargs,
) -> Orchestrator:
    return Orchestrator(
        make_registry(client),
        store if store is not None else InMemorySessionStore(),
        service or FakeService(),
        config=OrchestratorConfig(**config_kwargs),
        router=router,
    )


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()
