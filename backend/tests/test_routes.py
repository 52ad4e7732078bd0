import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi import HTTPException

from watchdesk.api.routes import (
    get_user_id,
    news_endpoint,
    queue_digest,
    read_digest,
    search_stocks_endpoint,
    stock_details_endpoint,
    watchlist_news,
)
from watchdesk.errors import ConfigurationError, DataValidityError, FetchError, RateLimitError


@pytest.mark.parametrize(
    ("error", "status_code", "kind"),
    [
        (RateLimitError(), 429, "rate_limited"),
        (DataValidityError("bad data"), 404, "data_invalid"),
        (FetchError("Failed to fetch stock details"), 502, "transient"),
        (ConfigurationError("no key"), 503, "config_missing"),
    ],
)
def test_stock_details_maps_error_kinds(error, status_code, kind) -> None:
    context = Mock()
    with patch("watchdesk.api.routes.get_stock_details", AsyncMock(side_effect=error)):
        with pytest.raises(HTTPException) as excinfo:
            asyncio.run(stock_details_endpoint("AAPL", context=context))

    assert excinfo.value.status_code == status_code
    assert excinfo.value.detail["kind"] == kind


def test_stock_details_none_is_not_found() -> None:
    with patch("watchdesk.api.routes.get_stock_details", AsyncMock(return_value=None)):
        with pytest.raises(HTTPException) as excinfo:
            asyncio.run(stock_details_endpoint("AAPL", context=Mock()))

    assert excinfo.value.status_code == 404


def test_news_endpoint_splits_symbols() -> None:
    context = Mock()
    with patch("watchdesk.api.routes.get_news", AsyncMock(return_value=[])) as news_mock:
        result = asyncio.run(news_endpoint(symbols="aapl,msft", max_articles=4, context=context))

    assert result == []
    news_mock.assert_awaited_once_with(context, ["aapl", "msft"], 4)


def test_search_passes_watchlist_symbols() -> None:
    context = Mock()
    db = Mock()
    with (
        patch(
            "watchdesk.api.routes.get_watchlist_symbols", AsyncMock(return_value=["AAPL"])
        ) as symbols_mock,
        patch("watchdesk.api.routes.search_stocks", AsyncMock(return_value=[])) as search_mock,
    ):
        asyncio.run(search_stocks_endpoint(q="app", user_id="user-1", context=context, db=db))

    symbols_mock.assert_awaited_once_with(db, "user-1")
    search_mock.assert_awaited_once_with(context, "app", ["AAPL"])


def test_watchlist_news_rate_limit_is_429() -> None:
    context = SimpleNamespace(market=SimpleNamespace(max_news_articles=6))
    with (
        patch("watchdesk.api.routes.get_watchlist_symbols", AsyncMock(return_value=["AAPL"])),
        patch(
            "watchdesk.api.routes.get_watchlist_news", AsyncMock(side_effect=RateLimitError())
        ),
    ):
        with pytest.raises(HTTPException) as excinfo:
            asyncio.run(watchlist_news(user_id="user-1", context=context, db=Mock()))

    assert excinfo.value.status_code == 429


def test_missing_user_identity_is_unauthorized() -> None:
    with pytest.raises(HTTPException) as excinfo:
        get_user_id("  ")

    assert excinfo.value.status_code == 401
    assert get_user_id(" user-1 ") == "user-1"


def test_queue_digest_enqueues_job() -> None:
    job = Mock()
    job.id = "job-123"
    with patch("watchdesk.api.routes.enqueue_news_digest", return_value=job) as enqueue_mock:
        result = queue_digest(user_id="user-1")

    enqueue_mock.assert_called_once_with("user-1")
    assert result.job_id == "job-123"
    assert result.status == "queued"


def test_missing_digest_is_not_found() -> None:
    with patch("watchdesk.api.routes.get_digest", return_value=None):
        with pytest.raises(HTTPException) as excinfo:
            read_digest(user_id="user-1")

    assert excinfo.value.status_code == 404
