"""Tests for ToolDispatcher: single execution, batches, timeouts, cancellation."""

from __future__ import annotations

import threading
import time

import pytest

from stockpilot.exceptions import RequestCancelledError
from stockpilot.models.messages import ToolCall
from stockpilot.toolkit import ToolDispatcher


@pytest.fixture
def dispatcher() -> ToolDispatcher:
    return ToolDispatcher(timeout=5)


def _call(call_id: str, name: str, **arguments) -> ToolCall:
    return ToolCall(id=call_id, name=name, arguments=arguments)


class TestExecute:
    def test_success(self, dispatcher, service):
        result = dispatcher.execute("get_stock_price", {"symbol": "AAPL"}, service, tool_call_id="c1")
        assert result.success
        assert result.tool_call_id == "c1"
        assert result.data["price"] == 187.5

    def test_unknown_tool(self, dispatcher, service):
        result = dispatcher.execute("get_weather", {}, service)
        assert not result.success
        assert "Unknown tool" in result.error

    def test_missing_required_argument(self, dispatcher, service):
        result = dispatcher.execute("get_stock_price", {}, service)
        assert not result.success
        assert "symbol" in result.error
        assert service.calls == []

    def test_operation_not_supported_by_service(self, dispatcher, service):
        result = dispatcher.execute("get_cash_flow", {"symbol": "AAPL"}, service)
        assert not result.success
        assert "not supported" in result.error

    def test_service_exception_becomes_failure(self, dispatcher, service):
        result = dispatcher.execute("get_news_sentiment", {"symbol": "AAPL"}, service)
        assert not result.success
        assert result.error == "RuntimeError: news upstream unavailable"

    def test_wire_names_mapped_and_unknown_arguments_dropped(self, dispatcher, service):
        result = dispatcher.execute(
            "screen_stocks",
            {"sector": "Technology", "marketCapMoreThan": 1e9, "bogus": 1},
            service,
        )
        assert result.success
        assert service.calls == [
            ("screen_stocks", {"sector": "Technology", "market_cap_more_than": 1e9})
        ]

    def test_pre_shaped_result_unwrapped(self, dispatcher, service):
        result = dispatcher.execute("screen_stocks", {}, service)
        assert result.data == [{"symbol": "MSFT"}]

    def test_pre_shaped_failure(self, dispatcher):
        class Service:
            def get_peers(self, symbol):
                return {"success": False, "error": "no peers"}

        result = dispatcher.execute("get_peers", {"symbol": "X"}, Service())
        assert not result.success
        assert result.error == "no peers"

    def test_list_definitions_filter(self, dispatcher):
        names = [t.name for t in dispatcher.list_definitions(["get_peers", "search_stock"])]
        assert names == ["search_stock", "get_peers"]
        assert len(dispatcher.list_definitions()) == len(dispatcher.available_tools())


class TestExecuteBatch:
    def test_empty_batch(self, dispatcher, service):
        assert dispatcher.execute_batch([], service) == []

    def test_results_follow_call_order(self, dispatcher):
        class Service:
            def get_stock_price(self, symbol):
                # later calls finish first
                time.sleep({"A": 0.3, "B": 0.2, "C": 0.1, "D": 0.0}[symbol])
                return {"symbol": symbol}

        calls = [_call(f"id_{s}", "get_stock_price", symbol=s) for s in "ABCD"]
        results = dispatcher.execute_batch(calls, Service())

        assert [r.tool_call_id for r in results] == ["id_A", "id_B", "id_C", "id_D"]
        assert [r.data["symbol"] for r in results] == list("ABCD")

    def test_calls_run_concurrently(self, dispatcher):
        barrier = threading.Barrier(3, timeout=2)

        class Service:
            def get_stock_price(self, symbol):
                barrier.wait()
                return symbol

        calls = [_call(f"c{i}", "get_stock_price", symbol=str(i)) for i in range(3)]
        results = dispatcher.execute_batch(calls, Service())
        assert all(r.success for r in results)

    def test_failures_are_isolated(self, dispatcher, service):
        calls = [
            _call("ok", "get_stock_price", symbol="AAPL"),
            _call("bad", "get_news_sentiment", symbol="AAPL"),
            _call("unknown", "get_weather"),
        ]
        results = dispatcher.execute_batch(calls, service)
        assert [r.success for r in results] == [True, False, False]

    def test_timeout_produces_failed_result(self, service):
        dispatcher = ToolDispatcher(timeout=0.2)
        calls = [
            _call("fast", "get_stock_price", symbol="AAPL"),
            _call("slow", "get_peers", symbol="AAPL"),
        ]
        try:
            results = dispatcher.execute_batch(calls, service)
        finally:
            service.release.set()

        assert results[0].success
        assert not results[1].success
        assert results[1].tool_call_id == "slow"
        assert "timed out" in results[1].error

    def test_timeout_counts_from_call_start(self):
        class Service:
            def get_stock_price(self, symbol):
                time.sleep(0.2)
                return {"symbol": symbol}

        dispatcher = ToolDispatcher(timeout=0.3, max_workers=1)
        calls = [_call("c0", "get_stock_price", symbol="A"), _call("c1", "get_stock_price", symbol="B")]
        results = dispatcher.execute_batch(calls, Service())

        assert [(r.tool_call_id, r.success) for r in results] == [("c0", True), ("c1", True)]

    def test_queued_call_behind_hung_worker_fails(self, service):
        dispatcher = ToolDispatcher(timeout=0.2, max_workers=1)
        calls = [
            _call("slow", "get_peers", symbol="AAPL"),
            _call("queued", "get_stock_price", symbol="AAPL"),
        ]
        began = time.monotonic()
        try:
            results = dispatcher.execute_batch(calls, service)
        finally:
            service.release.set()

        assert time.monotonic() - began < 2
        assert [r.success for r in results] == [False, False]
        assert "timed out" in results[0].error
        assert "did not start" in results[1].error

    def test_cancel_raises(self, service):
        dispatcher = ToolDispatcher(timeout=5)
        cancel = threading.Event()
        timer = threading.Timer(0.1, cancel.set)
        timer.start()
        try:
            with pytest.raises(RequestCancelledError):
                dispatcher.execute_batch([_call("slow", "get_peers", symbol="AAPL")], service, cancel=cancel)
        finally:
            timer.cancel()
            service.release.set()

    def test_already_cancelled(self, dispatcher, service):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(RequestCancelledError):
            dispatcher.execute_batch([_call("c", "get_stock_price", symbol="A")], service, cancel=cancel)

    @pytest.mark.parametrize("count", [1, 5, 20])
    def test_batch_correlation(self, dispatcher, service, count):
        calls = [_call(f"call_{i}", "get_stock_price", symbol=f"S{i}") for i in range(count)]
        results = dispatcher.execute_batch(calls, service)
        assert len(results) == count
        assert [r.tool_call_id for r in results] == [c.id for c in calls]
