from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class QuoteSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    current_price: float | None = None
    percent_change: float | None = None

    @classmethod
    def from_payload(cls, symbol: str, payload: dict | None) -> "QuoteSnapshot":
        payload = payload if isinstance(payload, dict) else {}
        price = payload.get("c")
        change = payload.get("dp")
        return cls(
            symbol=symbol,
            current_price=float(price) if isinstance(price, (int, float)) else None,
            percent_change=float(change) if isinstance(change, (int, float)) else None,
        )


class StockDetails(BaseModel):
    """Display-ready details for one symbol.

    ``market_cap_formatted`` is in USD; Finnhub's profile reports market
    capitalization in millions and it is scaled before formatting.
    """

    symbol: str
    company: str
    current_price: float
    change_percent: float
    price_formatted: str
    change_formatted: str
    market_cap_formatted: str
    pe_ratio: str


class StockSearchResult(BaseModel):
    symbol: str
    name: str
    exchange: str
    type: str
    is_in_watchlist: bool = False
