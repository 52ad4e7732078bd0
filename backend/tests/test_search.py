import asyncio

import pytest
from conftest import make_settings

from watchdesk.errors import RateLimitError
from watchdesk.services.search import search_stocks


def test_query_search_maps_results_and_flags_watchlist(upstream, make_context) -> None:
    upstream.route(
        "/search",
        (
            200,
            {
                "count": 2,
                "result": [
                    {"symbol": "aapl", "description": "APPLE INC", "displaySymbol": "AAPL", "type": "Common Stock"},
                    {"symbol": "APLE", "description": "", "type": ""},
                ],
            },
        ),
    )
    context = make_context()

    results = asyncio.run(search_stocks(context, "  apple ", watchlist_symbols=["AAPL"]))

    assert [result.symbol for result in results] == ["AAPL", "APLE"]
    assert results[0].name == "APPLE INC"
    assert results[0].exchange == "AAPL"
    assert results[0].is_in_watchlist is True
    assert results[1].name == "APLE"
    assert results[1].exchange == "US"
    assert results[1].type == "Stock"
    assert results[1].is_in_watchlist is False
    assert upstream.count("/search", q="apple") == 1


def test_results_are_capped(upstream, make_context) -> None:
    result = [{"symbol": f"S{i}", "description": f"Stock {i}", "type": "Common Stock"} for i in range(40)]
    upstream.route("/search", (200, {"count": 40, "result": result}))
    context = make_context()

    results = asyncio.run(search_stocks(context, "s"))

    assert len(results) == 15


def test_blank_query_lists_popular_profiles(upstream, make_context) -> None:
    def profile(request):
        symbol = request.url.params["symbol"]
        if symbol == "MSFT":
            return 500, "boom"
        if symbol == "GOOGL":
            return 200, {}
        return 200, {"name": f"{symbol} Corp", "exchange": "NASDAQ"}

    upstream.route("/stock/profile2", profile)
    context = make_context()

    results = asyncio.run(search_stocks(context, "   ", watchlist_symbols=["tsla"]))

    symbols = [result.symbol for result in results]
    assert len(symbols) == 8
    assert "MSFT" not in symbols
    assert "GOOGL" not in symbols
    assert symbols[0] == "AAPL"
    assert results[0].exchange == "NASDAQ"
    assert results[0].type == "Common Stock"
    assert [result.symbol for result in results if result.is_in_watchlist] == ["TSLA"]
    assert upstream.count("/stock/profile2") == 10


def test_missing_api_key_returns_empty(upstream, make_context) -> None:
    context = make_context(make_settings(api_key=None))

    assert asyncio.run(search_stocks(context, "apple")) == []
    assert upstream.calls == []


def test_query_rate_limit_propagates(upstream, make_context) -> None:
    upstream.route("/search", (429, ""))
    context = make_context()

    with pytest.raises(RateLimitError):
        asyncio.run(search_stocks(context, "apple"))


def test_query_failure_returns_empty(upstream, make_context) -> None:
    upstream.route("/search", (500, "down"))
    context = make_context()

    assert asyncio.run(search_stocks(context, "apple")) == []
