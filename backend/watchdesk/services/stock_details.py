from __future__ import annotations

import asyncio
import logging
from typing import Any

from watchdesk.errors import DataValidityError, FetchError, RateLimitError
from watchdesk.providers import finnhub
from watchdesk.schemas.market import QuoteSnapshot, StockDetails
from watchdesk.services.context import MarketDataContext
from watchdesk.services.formatting import (
    format_change_percent,
    format_market_cap,
    format_pe_ratio,
    format_price,
)

logger = logging.getLogger(__name__)


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


async def _cached_quote(snapshot: QuoteSnapshot) -> QuoteSnapshot:
    return snapshot


async def _fetch_quote(context: MarketDataContext, symbol: str) -> QuoteSnapshot:
    payload = await context.limiter.limit(
        finnhub.fetch_quote, context.fetcher, context.api_key, symbol
    )
    return QuoteSnapshot.from_payload(symbol, payload)


async def get_stock_details(context: MarketDataContext, symbol: str) -> StockDetails | None:
    """
    Compose quote, company profile and financial metrics for one symbol.

    The quote is served from the in-process TTL cache when fresh; profile and
    metrics rely on the HTTP response cache. Returns None when no API key is
    configured. Rate limits propagate unchanged so callers can render a
    distinct state; incomplete upstream data raises DataValidityError.
    """
    clean_symbol = normalize_symbol(symbol)

    api_key = context.api_key
    if not api_key:
        logger.error("Finnhub API key is not configured; cannot load %s", clean_symbol)
        return None

    market = context.market
    try:
        cached_quote = context.quote_cache.get(clean_symbol)
        quote, profile, financials = await asyncio.gather(
            _cached_quote(cached_quote)
            if cached_quote is not None
            else _fetch_quote(context, clean_symbol),
            context.limiter.limit(
                finnhub.fetch_profile,
                context.fetcher,
                api_key,
                clean_symbol,
                market.profile_cache_ttl_seconds,
            ),
            context.limiter.limit(
                finnhub.fetch_metrics,
                context.fetcher,
                api_key,
                clean_symbol,
                market.metrics_cache_ttl_seconds,
            ),
        )

        if cached_quote is None:
            context.quote_cache.put(clean_symbol, quote)

        company = profile.get("name")
        if not quote.current_price or not company:
            raise DataValidityError(f"Invalid stock data received for {clean_symbol}")

        return _build_details(clean_symbol, quote, profile, financials)
    except RateLimitError:
        raise
    except DataValidityError:
        logger.warning("Incomplete upstream data for %s", clean_symbol)
        raise
    except Exception as exc:
        logger.error("Error fetching details for %s: %s", clean_symbol, exc)
        raise FetchError("Failed to fetch stock details") from exc


def _build_details(
    symbol: str,
    quote: QuoteSnapshot,
    profile: dict[str, Any],
    financials: dict[str, Any],
) -> StockDetails:
    change_percent = quote.percent_change or 0.0
    metric = financials.get("metric")
    pe_value = metric.get("peNormalizedAnnual") if isinstance(metric, dict) else None

    return StockDetails(
        symbol=symbol,
        company=profile["name"],
        current_price=quote.current_price,
        change_percent=change_percent,
        price_formatted=format_price(quote.current_price),
        change_formatted=format_change_percent(change_percent),
        market_cap_formatted=format_market_cap(profile.get("marketCapitalization")),
        pe_ratio=format_pe_ratio(pe_value),
    )
