"""Hand-crafted tool definitions for the research data service.

Each definition carries an action-oriented description and a JSON Schema
for its parameters. The operation behind a tool is a method of the same
name on the data service; see ``ToolDispatcher`` for how calls are bound.
"""

from __future__ import annotations

import logging

from stockpilot.toolkit.models import ToolDefinition

logger = logging.getLogger(__name__)

_SYMBOL = {
    "type": "string",
    "description": 'Stock ticker symbol (e.g., "AAPL", "MSFT")',
}

_CHART_RANGE = (
    'Price history range for charts (e.g., "1y", "3y", "5y", "max").'
)


def _symbol_tool(name: str, description: str) -> ToolDefinition:
    return ToolDefinition(
        name=name,
        description=description,
        parameters={
            "type": "object",
            "properties": {"symbol": dict(_SYMBOL)},
            "required": ["symbol"],
        },
    )


def get_all_tools() -> list[ToolDefinition]:
    """Build the definitions of every research tool.

    Returns:
        List of ToolDefinition objects in catalog order.
    """
    return [
        # -- lookup -----------------------------------------------------
        ToolDefinition(
            name="search_stock",
            description=(
                "Search for US stock symbols by company name or ticker. Use this "
                "first when the ticker is unknown."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": (
                            'Company name or stock ticker to search for (e.g., '
                            '"Apple", "AAPL", "Microsoft")'
                        ),
                    },
                },
                "required": ["query"],
            },
        ),
        ToolDefinition(
            name="search_companies",
            description="Search US-listed companies by keyword across multiple data sources.",
            parameters={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "Company name or keyword to search for",
                    },
                },
                "required": ["query"],
            },
        ),
        # -- prices -----------------------------------------------------
        _symbol_tool(
            "get_stock_price",
            "Get the current stock price and basic quote information for a US "
            "stock: price, change, volume and latest trading day.",
        ),
        ToolDefinition(
            name="get_price_history",
            description=(
                "Get historical OHLCV price data for a US stock. Range supports "
                "daily/weekly/monthly or 1w, 1m, 3m, 6m, 1y, 3y, 5y, max."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "symbol": dict(_SYMBOL),
                    "range": {
                        "type": "string",
                        "description": (
                            'Time range: "daily", "weekly", "monthly", "1w", "1m", '
                            '"3m", "6m", "1y", "3y", "5y", "max". Default is "daily"'
                        ),
                    },
                },
                "required": ["symbol"],
            },
        ),
        # -- fundamentals -----------------------------------------------
        _symbol_tool(
            "get_company_overview",
            "Get comprehensive company information including EPS, P/E, PEG, "
            "profit margins, market cap, dividend yield, 52-week range and "
            "analyst target price.",
        ),
        _symbol_tool(
            "get_basic_financials",
            "Get detailed financial ratios, metrics and historical series "
            "(including P/E history) for a US stock.",
        ),
        _symbol_tool(
            "get_earnings_history",
            "Get historical EPS including quarterly and annual EPS, estimates "
            "and earnings surprises.",
        ),
        _symbol_tool(
            "get_income_statement",
            "Get quarterly and annual income statements: revenue, gross profit, "
            "operating income, net income and EBITDA.",
        ),
        _symbol_tool(
            "get_balance_sheet",
            "Get balance sheet data: total assets, liabilities, shareholder "
            "equity, cash and debt levels.",
        ),
        _symbol_tool(
            "get_cash_flow",
            "Get cash flow data: operating cash flow, capital expenditures, "
            "free cash flow and dividends.",
        ),
        # -- ownership and analysts -------------------------------------
        _symbol_tool(
            "get_insider_trading",
            "Get insider ownership data: insider %, institutional %, short "
            "interest and recent insider transactions.",
        ),
        _symbol_tool(
            "get_analyst_ratings",
            "Get the analyst ratings breakdown (Strong Buy to Strong Sell) and "
            "consensus target price with upside.",
        ),
        _symbol_tool(
            "get_analyst_recommendations",
            "Get analyst recommendation trends over time.",
        ),
        _symbol_tool(
            "get_price_targets",
            "Get the analyst price target summary (high/low/mean/median).",
        ),
        _symbol_tool("get_peers", "Get a list of peer tickers for a US stock."),
        # -- market and sectors -----------------------------------------
        ToolDefinition(
            name="get_sector_performance",
            description=(
                "Get real-time sector performance across timeframes for all "
                "market sectors."
            ),
            parameters={"type": "object", "properties": {}, "required": []},
        ),
        ToolDefinition(
            name="get_stocks_by_sector",
            description=(
                "List stocks in a sector. For themes, use search_companies or "
                "search_news to build a list."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "sector": {
                        "type": "string",
                        "description": (
                            'Sector name (e.g., "Technology", "Healthcare", '
                            '"Financial Services")'
                        ),
                    },
                },
                "required": ["sector"],
            },
        ),
        ToolDefinition(
            name="screen_stocks",
            description=(
                "Screen stocks with filters like sector, industry, market cap "
                "thresholds and limit."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "sector": {"type": "string", "description": "Sector name filter (optional)"},
                    "industry": {"type": "string", "description": "Industry name filter (optional)"},
                    "marketCapMoreThan": {"type": "number", "description": "Minimum market cap (optional)"},
                    "marketCapLowerThan": {"type": "number", "description": "Maximum market cap (optional)"},
                    "limit": {"type": "number", "description": "Max results (optional, default 20)"},
                },
                "required": [],
            },
        ),
        ToolDefinition(
            name="get_top_gainers_losers",
            description=(
                "Get today's top gaining, top losing and most actively traded "
                "US stocks."
            ),
            parameters={"type": "object", "properties": {}, "required": []},
        ),
        # -- news -------------------------------------------------------
        _symbol_tool(
            "get_news_sentiment",
            "Get the latest news articles with sentiment scores for a US stock.",
        ),
        ToolDefinition(
            name="get_company_news",
            description="Get recent company news articles for a US stock.",
            parameters={
                "type": "object",
                "properties": {
                    "symbol": dict(_SYMBOL),
                    "days": {"type": "number", "description": "Lookback window in days (optional)"},
                },
                "required": ["symbol"],
            },
        ),
        ToolDefinition(
            name="search_news",
            description="Search recent market news by keyword or company name.",
            parameters={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Keyword or company name to search"},
                    "days": {"type": "number", "description": "Lookback window in days (optional)"},
                },
                "required": ["query"],
            },
        ),
        # -- reports ----------------------------------------------------
        ToolDefinition(
            name="generate_stock_report",
            description=(
                "Generate a comprehensive stock research report and save it as a "
                "markdown artifact. Returns the report content and its artifact "
                "reference."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "symbol": {
                        "type": "string",
                        "description": 'Stock ticker or company name (e.g., "AAPL", "Apple")',
                    },
                    "range": {"type": "string", "description": f'{_CHART_RANGE} Default is "5y"'},
                },
                "required": ["symbol"],
            },
        ),
        ToolDefinition(
            name="generate_peer_report",
            description=(
                "Generate a peer comparison report for a stock and save it as a "
                "markdown artifact."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "symbol": {"type": "string", "description": 'Stock ticker symbol (e.g., "AMD")'},
                    "limit": {"type": "number", "description": "Max peers to include (optional, default 8)"},
                    "range": {"type": "string", "description": f'{_CHART_RANGE} Default is "5y"'},
                },
                "required": ["symbol"],
            },
        ),
        ToolDefinition(
            name="generate_comparison_report",
            description=(
                "Generate a comparison report for multiple companies and save it "
                "as a markdown artifact."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "companies": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Company names or tickers (2-6 items)",
                    },
                    "range": {"type": "string", "description": f'{_CHART_RANGE} Default is "1y"'},
                },
                "required": ["companies"],
            },
        ),
        ToolDefinition(
            name="generate_sector_report",
            description=(
                "Generate a sector or theme report and save it as a markdown "
                "artifact."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": 'Sector or theme query (e.g., "AI data center", "Semiconductors")',
                    },
                    "limit": {"type": "number", "description": "Max companies to include (optional, default 4)"},
                },
                "required": ["query"],
            },
        ),
    ]
