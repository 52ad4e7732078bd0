from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from watchdesk.errors import RateLimitError
from watchdesk.providers import finnhub
from watchdesk.schemas.market import StockSearchResult
from watchdesk.services.context import MarketDataContext

logger = logging.getLogger(__name__)


async def _popular_profile(context: MarketDataContext, symbol: str) -> dict[str, Any] | None:
    try:
        profile = await context.limiter.limit(
            finnhub.fetch_profile,
            context.fetcher,
            context.api_key,
            symbol,
            context.market.profile_cache_ttl_seconds,
        )
    except Exception as exc:
        logger.warning("Error fetching profile for %s: %s", symbol, exc)
        return None

    name = profile.get("name") or profile.get("ticker")
    if not name:
        return None
    return {
        "symbol": symbol.upper(),
        "description": name,
        "displaySymbol": symbol.upper(),
        "type": "Common Stock",
        "exchange": profile.get("exchange"),
    }


async def _popular_results(context: MarketDataContext) -> list[dict[str, Any]]:
    top = context.market.popular_symbols[: context.market.popular_symbol_count]
    profiles = await asyncio.gather(*(_popular_profile(context, symbol) for symbol in top))
    return [profile for profile in profiles if profile]


async def search_stocks(
    context: MarketDataContext,
    query: str | None = None,
    watchlist_symbols: Iterable[str] = (),
) -> list[StockSearchResult]:
    if not context.api_key:
        logger.error("Finnhub API key is not configured; stock search disabled")
        return []

    market = context.market
    watched = {symbol.strip().upper() for symbol in watchlist_symbols}
    trimmed = query.strip() if isinstance(query, str) else ""

    try:
        if trimmed:
            results = await context.limiter.limit(
                finnhub.search_symbols,
                context.fetcher,
                context.api_key,
                trimmed,
                market.search_cache_ttl_seconds,
            )
        else:
            results = await _popular_results(context)
    except RateLimitError:
        raise
    except Exception as exc:
        logger.error("Error in stock search: %s", exc)
        return []

    mapped: list[StockSearchResult] = []
    for result in results:
        if not isinstance(result, dict):
            continue
        symbol = (result.get("symbol") or "").upper()
        if not symbol:
            continue
        mapped.append(
            StockSearchResult(
                symbol=symbol,
                name=result.get("description") or symbol,
                exchange=result.get("exchange") or result.get("displaySymbol") or "US",
                type=result.get("type") or "Stock",
                is_in_watchlist=symbol in watched,
            )
        )
    return mapped[: market.max_search_results]
