"""Tests for tool definitions, profiles and results."""

from __future__ import annotations

import pytest

from stockpilot.toolkit import (
    CORE_PROFILE,
    FULL_PROFILE,
    ToolConfig,
    ToolDefinition,
    ToolProfile,
    ToolResult,
    get_all_tools,
    get_profile,
)


class TestToolCatalog:
    def test_catalog_size_and_unique_names(self):
        tools = get_all_tools()
        names = [t.name for t in tools]
        assert len(tools) == 26
        assert len(set(names)) == len(names)

    def test_required_arguments_are_declared(self):
        for tool in get_all_tools():
            assert set(tool.required) <= set(tool.properties), tool.name

    def test_openai_format(self):
        for tool in get_all_tools():
            wire = tool.to_openai()
            assert wire["type"] == "function"
            assert wire["function"]["name"] == tool.name
            assert wire["function"]["parameters"]["type"] == "object"

    def test_operation_defaults_to_name(self):
        tool = ToolDefinition(name="get_peers", description="d", parameters={})
        assert tool.operation == "get_peers"
        assert ToolDefinition("a", "d", {}, operation="b").operation == "b"

    def test_screen_stocks_uses_wire_names(self):
        screen = next(t for t in get_all_tools() if t.name == "screen_stocks")
        assert "marketCapMoreThan" in screen.properties
        assert screen.required == []


class TestToolProfiles:
    def test_full_profile_includes_everything(self):
        tools = get_all_tools()
        assert FULL_PROFILE.filter_tools(tools) == tools

    def test_core_profile(self):
        core = CORE_PROFILE.filter_tools(get_all_tools())
        assert [t.name for t in core] == [
            "search_stock",
            "get_stock_price",
            "get_company_overview",
            "get_news_sentiment",
        ]
        assert core[1].description == "Current quote for a ticker."

    def test_disabled_tool_excluded(self):
        profile = ToolProfile(
            name="custom",
            tool_configs={
                "get_peers": ToolConfig(enabled=False),
                "search_stock": ToolConfig(),
            },
        )
        assert [t.name for t in profile.filter_tools(get_all_tools())] == ["search_stock"]

    def test_get_profile(self):
        assert get_profile("core") is CORE_PROFILE
        with pytest.raises(ValueError, match="Unknown tool profile"):
            get_profile("tiny")


class TestToolResult:
    def test_success_payload(self):
        result = ToolResult(tool_call_id="c", tool_name="t", success=True, data={"x": 1})
        assert result.to_payload() == {"success": True, "data": {"x": 1}}

    def test_failure_payload(self):
        result = ToolResult(tool_call_id="c", tool_name="t", success=False, error="boom")
        assert result.to_payload() == {"success": False, "error": "boom"}
