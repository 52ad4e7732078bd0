from __future__ import annotations

import asyncio
import datetime
import logging

from watchdesk.cache import set_digest
from watchdesk.config.settings import settings
from watchdesk.db.session import AsyncSessionLocal
from watchdesk.db.watchlist import get_watchlist_symbols
from watchdesk.logging_config import setup_logging
from watchdesk.schemas.news import NewsDigest
from watchdesk.services.context import build_market_context
from watchdesk.services.news import get_news

logger = logging.getLogger(__name__)


async def _build_digest(user_id: str) -> NewsDigest:
    async with AsyncSessionLocal() as session:
        symbols = await get_watchlist_symbols(session, user_id)

    # Each job run has its own event loop, so it gets its own context.
    context = build_market_context(settings)
    try:
        articles = await get_news(
            context, symbols or None, settings.market_data.max_news_articles
        )
    finally:
        await context.aclose()

    return NewsDigest(
        user_id=user_id,
        generated_at=datetime.datetime.now(datetime.UTC),
        symbols=symbols,
        articles=articles,
    )


def run_news_digest(user_id: str) -> int:
    setup_logging(settings.log_level)
    digest = asyncio.run(_build_digest(user_id))
    if set_digest(digest, settings.digest_ttl_seconds):
        logger.info(
            "Stored news digest for %s with %d articles", user_id, len(digest.articles)
        )
    return len(digest.articles)
