from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx

from watchdesk.cache import ResponseCache
from watchdesk.config.settings import MarketDataSettings, Settings
from watchdesk.limiter import ConcurrencyLimiter
from watchdesk.providers.http import JsonFetcher
from watchdesk.quote_cache import TTLCache
from watchdesk.schemas.market import QuoteSnapshot


@dataclass
class MarketDataContext:
    """Process-wide aggregation state, built once and passed into every call."""

    settings: Settings
    fetcher: JsonFetcher
    limiter: ConcurrencyLimiter
    quote_cache: TTLCache[QuoteSnapshot]

    @property
    def api_key(self) -> str | None:
        return self.settings.providers.finnhub_api_key

    @property
    def market(self) -> MarketDataSettings:
        return self.settings.market_data

    async def aclose(self) -> None:
        await self.fetcher.client.aclose()
        await self.fetcher.response_cache.aclose()


def build_market_context(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
    response_cache: ResponseCache | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> MarketDataContext:
    market = settings.market_data
    if response_cache is None:
        response_cache = (
            ResponseCache.from_url(settings.redis_url)
            if market.response_cache_enabled
            else ResponseCache(None)
        )
    client = httpx.AsyncClient(
        base_url=settings.providers.finnhub_base_url,
        timeout=market.request_timeout_seconds,
        transport=transport,
    )
    fetcher = JsonFetcher(
        client,
        response_cache,
        sleep=sleep,
        backoff_base_seconds=market.backoff_base_seconds,
        max_retries=market.max_retries,
    )
    return MarketDataContext(
        settings=settings,
        fetcher=fetcher,
        limiter=ConcurrencyLimiter(market.concurrency),
        quote_cache=TTLCache(market.quote_cache_ttl_seconds, clock=clock),
    )
