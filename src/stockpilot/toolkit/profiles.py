"""Built-in tool profiles.

Two profiles:
- ``FULL_PROFILE``: every research tool with default descriptions.
- ``CORE_PROFILE``: a small read-only set sent when a request has to be
  shrunk to fit the provider's payload limit.
"""

from __future__ import annotations

from stockpilot.toolkit.models import ToolConfig, ToolProfile

# ---------------------------------------------------------------------------
# All tool names (must match definitions.py)
# ---------------------------------------------------------------------------
_ALL_TOOL_NAMES = [
    "search_stock",
    "search_companies",
    "get_stock_price",
    "get_price_history",
    "get_company_overview",
    "get_basic_financials",
    "get_earnings_history",
    "get_income_statement",
    "get_balance_sheet",
    "get_cash_flow",
    "get_insider_trading",
    "get_analyst_ratings",
    "get_analyst_recommendations",
    "get_price_targets",
    "get_peers",
    "get_sector_performance",
    "get_stocks_by_sector",
    "screen_stocks",
    "get_top_gainers_losers",
    "get_news_sentiment",
    "get_company_news",
    "search_news",
    "generate_stock_report",
    "generate_peer_report",
    "generate_comparison_report",
    "generate_sector_report",
]

FULL_PROFILE = ToolProfile(
    name="full",
    tool_configs={name: ToolConfig(enabled=True) for name in _ALL_TOOL_NAMES},
)

# Short descriptions keep the reduced payload small.
CORE_PROFILE = ToolProfile(
    name="core",
    tool_configs={
        "search_stock": ToolConfig(description="Find a ticker by company name."),
        "get_stock_price": ToolConfig(description="Current quote for a ticker."),
        "get_company_overview": ToolConfig(description="Key fundamentals for a ticker."),
        "get_news_sentiment": ToolConfig(description="Recent news and sentiment for a ticker."),
    },
)

_PROFILES: dict[str, ToolProfile] = {
    "full": FULL_PROFILE,
    "core": CORE_PROFILE,
}


def get_profile(name: str) -> ToolProfile:
    """Return the built-in profile called ``name`` ("full" or "core").

    Raises:
        ValueError: For any other name.
    """
    try:
        return _PROFILES[name]
    except KeyError:
        known = ", ".join(sorted(_PROFILES))
        raise ValueError(f"Unknown tool profile {name!r} (known: {known})") from None
