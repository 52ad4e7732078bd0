from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from watchdesk.errors import ConfigurationError, FetchError, RateLimitError
from watchdesk.providers import finnhub
from watchdesk.schemas.news import NewsArticle
from watchdesk.services.context import MarketDataContext
from watchdesk.services.formatting import article_key, format_article, is_valid_article

logger = logging.getLogger(__name__)


def normalize_symbols(symbols: Iterable[str | None] | None) -> list[str]:
    cleaned = (
        symbol.strip().upper() for symbol in symbols or [] if isinstance(symbol, str)
    )
    return list(dict.fromkeys(symbol for symbol in cleaned if symbol))


async def _fetch_symbol_articles(
    context: MarketDataContext, symbol: str, start: str, end: str
) -> list[dict]:
    try:
        articles = await context.limiter.limit(
            finnhub.fetch_company_news,
            context.fetcher,
            context.api_key,
            symbol,
            start,
            end,
            context.market.news_cache_ttl_seconds,
        )
    except Exception as exc:
        logger.warning("Error fetching company news for %s: %s", symbol, exc)
        return []
    return [article for article in articles if is_valid_article(article)]


def round_robin(
    symbols: list[str],
    per_symbol: dict[str, list[dict]],
    max_articles: int,
    summary_length: int,
) -> list[NewsArticle]:
    """Interleave picks across symbols: at most one unused article per symbol per round."""
    queues = {symbol: list(per_symbol.get(symbol, [])) for symbol in symbols}
    seen: set[str] = set()
    collected: list[NewsArticle] = []

    for _ in range(max_articles):
        for symbol in symbols:
            queue = queues[symbol]
            while queue:
                article = queue.pop(0)
                key = article_key(article)
                if key in seen:
                    continue
                seen.add(key)
                collected.append(format_article(article, True, summary_length, symbol))
                break
            if len(collected) >= max_articles:
                return collected
    return collected


async def _general_news(context: MarketDataContext, max_articles: int) -> list[NewsArticle]:
    market = context.market
    general = await context.limiter.limit(
        finnhub.fetch_general_news,
        context.fetcher,
        context.api_key,
        market.news_cache_ttl_seconds,
    )

    seen: set[str] = set()
    unique: list[dict] = []
    for article in general:
        if not is_valid_article(article):
            continue
        key = article_key(article)
        if key in seen:
            continue
        seen.add(key)
        unique.append(article)
        if len(unique) >= market.general_news_scan_limit:
            break

    return [
        format_article(article, False, market.general_summary_length)
        for article in unique[:max_articles]
    ]


async def get_news(
    context: MarketDataContext,
    symbols: Iterable[str | None] | None = None,
    max_articles: int = 6,
) -> list[NewsArticle]:
    """
    Build a short news feed for the given symbols.

    Company news is fetched per symbol over the trailing window and
    interleaved round-robin so one busy ticker cannot crowd out the rest;
    the result is newest first. A symbol whose fetch fails contributes
    nothing. If no symbol yields anything (or none were given) the feed falls
    back to general market news in upstream order. A cap below one yields an
    empty feed without touching the network.
    """
    if not context.api_key:
        raise ConfigurationError("Finnhub API key is not configured")
    if max_articles < 1:
        return []

    market = context.market
    clean_symbols = normalize_symbols(symbols)

    try:
        if clean_symbols:
            start, end = finnhub.date_range(market.news_lookback_days)
            results = await asyncio.gather(
                *(
                    _fetch_symbol_articles(context, symbol, start, end)
                    for symbol in clean_symbols
                )
            )
            per_symbol = dict(zip(clean_symbols, results))
            collected = round_robin(
                clean_symbols, per_symbol, max_articles, market.company_summary_length
            )
            if collected:
                collected.sort(key=lambda article: article.datetime, reverse=True)
                return collected[:max_articles]
            logger.info("No company news for %s; falling back to general news", clean_symbols)

        return await _general_news(context, max_articles)
    except RateLimitError:
        raise
    except Exception as exc:
        logger.error("get_news error: %s", exc)
        raise FetchError("Failed to fetch news") from exc
