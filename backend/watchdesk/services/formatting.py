from __future__ import annotations

import math
from typing import Any

from watchdesk.schemas.news import NewsArticle

PE_PLACEHOLDER = "—"


def format_price(value: float) -> str:
    return f"${value:,.2f}"


def format_change_percent(value: float | None) -> str:
    if value is None:
        return ""
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.2f}%"


def format_market_cap(market_cap_millions: float | None) -> str:
    """Finnhub reports market capitalization in millions of USD."""
    if not isinstance(market_cap_millions, (int, float)):
        return "N/A"
    usd = float(market_cap_millions) * 1_000_000
    if not math.isfinite(usd) or usd <= 0:
        return "N/A"
    if usd >= 1e12:
        return f"${usd / 1e12:.2f}T"
    if usd >= 1e9:
        return f"${usd / 1e9:.2f}B"
    if usd >= 1e6:
        return f"${usd / 1e6:.2f}M"
    return f"${usd:.2f}"


def format_pe_ratio(value: Any) -> str:
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not value:
        return PE_PLACEHOLDER
    return f"{value:.1f}"


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def is_valid_article(article: Any) -> bool:
    if not isinstance(article, dict):
        return False
    for field in ("headline", "summary", "url", "source"):
        if not _has_text(article.get(field)):
            return False
    published = article.get("datetime")
    if isinstance(published, bool) or not isinstance(published, (int, float)):
        return False
    return math.isfinite(published) and published > 0


def article_key(article: dict) -> str:
    return f"{article.get('id')}-{article.get('url')}-{article.get('headline')}"


def _text(value: Any, default: str = "") -> str:
    return value.strip() if isinstance(value, str) and value.strip() else default


def _article_id(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value) if math.isfinite(value) else 0


def _truncate(text: str, length: int) -> str:
    text = text.strip()
    if len(text) <= length:
        return text
    return text[:length] + "..."


def format_article(
    article: dict,
    is_company_news: bool,
    summary_length: int,
    symbol: str | None = None,
) -> NewsArticle:
    """Upstream optional fields of the wrong type fall back to empty defaults."""
    return NewsArticle(
        id=_article_id(article.get("id")),
        headline=article["headline"].strip(),
        summary=_truncate(article["summary"], summary_length),
        source=article["source"].strip(),
        url=article["url"],
        datetime=int(article["datetime"]),
        category="company" if is_company_news else _text(article.get("category"), "general"),
        related=(symbol or "") if is_company_news else _text(article.get("related")),
        image=_text(article.get("image")),
    )
