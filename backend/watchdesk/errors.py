from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    TRANSIENT = "transient"
    DATA_INVALID = "data_invalid"
    CONFIG_MISSING = "config_missing"


class MarketDataError(Exception):
    """Base class for aggregation-layer failures; callers branch on ``kind``."""

    kind: ErrorKind = ErrorKind.TRANSIENT


class RateLimitError(MarketDataError):
    kind = ErrorKind.RATE_LIMITED

    def __init__(self, message: str = "API rate limit exceeded. Please try again later.") -> None:
        super().__init__(message)


class FetchError(MarketDataError):
    kind = ErrorKind.TRANSIENT

    def __init__(
        self, message: str, status_code: int | None = None, body: str = ""
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DataValidityError(MarketDataError):
    kind = ErrorKind.DATA_INVALID


class ConfigurationError(MarketDataError):
    kind = ErrorKind.CONFIG_MISSING
