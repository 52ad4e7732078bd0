from __future__ import annotations

import asyncio
import datetime
import logging
from typing import Iterable, Protocol

from watchdesk.errors import MarketDataError, RateLimitError
from watchdesk.schemas.news import NewsArticle
from watchdesk.schemas.watchlist import WatchlistStock
from watchdesk.services.context import MarketDataContext
from watchdesk.services.news import get_news
from watchdesk.services.stock_details import get_stock_details

logger = logging.getLogger(__name__)


class WatchlistEntry(Protocol):
    symbol: str
    company_name: str
    added_at: datetime.datetime


async def _watchlist_row(context: MarketDataContext, item: WatchlistEntry) -> WatchlistStock:
    try:
        details = await get_stock_details(context, item.symbol)
    except RateLimitError:
        raise
    except MarketDataError as exc:
        logger.warning("Details unavailable for %s: %s", item.symbol, exc)
        details = None

    if details is None:
        return WatchlistStock(
            symbol=item.symbol,
            company=item.company_name,
            added_at=item.added_at,
        )

    return WatchlistStock(
        symbol=details.symbol,
        company=details.company,
        added_at=item.added_at,
        current_price=details.current_price,
        change_percent=details.change_percent,
        price_formatted=details.price_formatted,
        change_formatted=details.change_formatted,
        market_cap=details.market_cap_formatted,
        pe_ratio=details.pe_ratio,
    )


async def get_watchlist_with_data(
    context: MarketDataContext, items: Iterable[WatchlistEntry]
) -> list[WatchlistStock]:
    ordered = sorted(items, key=lambda item: item.added_at, reverse=True)
    return list(await asyncio.gather(*(_watchlist_row(context, item) for item in ordered)))


async def get_watchlist_news(
    context: MarketDataContext, symbols: list[str], max_articles: int = 6
) -> list[NewsArticle]:
    try:
        articles = await get_news(context, symbols or None, max_articles)
    except RateLimitError:
        raise
    except MarketDataError as exc:
        logger.error("get_watchlist_news error: %s", exc)
        return []
    return articles[:max_articles]
