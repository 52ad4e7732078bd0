from __future__ import annotations

import datetime

from pydantic import BaseModel


class WatchlistRequest(BaseModel):
    symbol: str
    company_name: str


class WatchlistItemResponse(BaseModel):
    symbol: str
    company_name: str
    active: bool
    added_at: datetime.datetime
    removed_at: datetime.datetime | None = None


class WatchlistStock(BaseModel):
    symbol: str
    company: str
    added_at: datetime.datetime
    current_price: float | None = None
    change_percent: float | None = None
    price_formatted: str = "N/A"
    change_formatted: str = "N/A"
    market_cap: str = "N/A"
    pe_ratio: str | None = None


class DigestJobResponse(BaseModel):
    job_id: str
    status: str = "queued"
