from __future__ import annotations

import datetime
from typing import Any

from watchdesk.providers.http import JsonFetcher


_QUOTE_PATH = "/quote"
_PROFILE_PATH = "/stock/profile2"
_METRIC_PATH = "/stock/metric"
_SEARCH_PATH = "/search"
_COMPANY_NEWS_PATH = "/company-news"
_GENERAL_NEWS_PATH = "/news"


def date_range(days: int, today: datetime.date | None = None) -> tuple[str, str]:
    end = today or datetime.date.today()
    start = end - datetime.timedelta(days=days)
    return start.isoformat(), end.isoformat()


async def fetch_quote(fetcher: JsonFetcher, api_key: str, symbol: str) -> dict[str, Any]:
    # Quotes are never HTTP-cached; freshness is handled by the quote TTL cache.
    payload = await fetcher.fetch_json(_QUOTE_PATH, {"symbol": symbol, "token": api_key})
    return payload if isinstance(payload, dict) else {}


async def fetch_profile(
    fetcher: JsonFetcher, api_key: str, symbol: str, cache_ttl_seconds: int
) -> dict[str, Any]:
    payload = await fetcher.fetch_json(
        _PROFILE_PATH, {"symbol": symbol, "token": api_key}, cache_ttl_seconds
    )
    return payload if isinstance(payload, dict) else {}


async def fetch_metrics(
    fetcher: JsonFetcher, api_key: str, symbol: str, cache_ttl_seconds: int
) -> dict[str, Any]:
    payload = await fetcher.fetch_json(
        _METRIC_PATH,
        {"symbol": symbol, "metric": "all", "token": api_key},
        cache_ttl_seconds,
    )
    return payload if isinstance(payload, dict) else {}


async def search_symbols(
    fetcher: JsonFetcher, api_key: str, query: str, cache_ttl_seconds: int
) -> list[dict[str, Any]]:
    payload = await fetcher.fetch_json(
        _SEARCH_PATH, {"q": query, "token": api_key}, cache_ttl_seconds
    )
    if not isinstance(payload, dict):
        return []
    results = payload.get("result")
    return results if isinstance(results, list) else []


async def fetch_company_news(
    fetcher: JsonFetcher,
    api_key: str,
    symbol: str,
    start: str,
    end: str,
    cache_ttl_seconds: int,
) -> list[dict[str, Any]]:
    payload = await fetcher.fetch_json(
        _COMPANY_NEWS_PATH,
        {"symbol": symbol, "from": start, "to": end, "token": api_key},
        cache_ttl_seconds,
    )
    return payload if isinstance(payload, list) else []


async def fetch_general_news(
    fetcher: JsonFetcher, api_key: str, cache_ttl_seconds: int
) -> list[dict[str, Any]]:
    payload = await fetcher.fetch_json(
        _GENERAL_NEWS_PATH, {"category": "general", "token": api_key}, cache_ttl_seconds
    )
    return payload if isinstance(payload, list) else []
