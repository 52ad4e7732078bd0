from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Mapping
from urllib.parse import urlencode

import httpx

from watchdesk.cache import ResponseCache
from watchdesk.errors import FetchError, RateLimitError

logger = logging.getLogger(__name__)

# Query parameters that must never end up in a cache key.
_SECRET_PARAMS = frozenset({"token"})


def build_cache_key(path: str, params: Mapping[str, Any] | None = None) -> str:
    public = sorted(
        (key, str(value))
        for key, value in (params or {}).items()
        if key not in _SECRET_PARAMS
    )
    return f"http:{path}?{urlencode(public)}"


class JsonFetcher:
    """GETs JSON from the upstream API, retrying on 429 with exponential backoff.

    When a ``cache_ttl_seconds`` is passed, successful payloads are served from
    and stored into the shared response cache for that long; otherwise the
    cache is bypassed entirely.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        response_cache: ResponseCache | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        backoff_base_seconds: float = 1.0,
        max_retries: int = 2,
    ) -> None:
        self.client = client
        self.response_cache = response_cache or ResponseCache(None)
        self._sleep = sleep
        self.backoff_base_seconds = backoff_base_seconds
        self.max_retries = max_retries

    async def fetch_json(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        cache_ttl_seconds: int | None = None,
        max_retries: int | None = None,
    ) -> Any:
        retries = self.max_retries if max_retries is None else max_retries
        cache_key = build_cache_key(path, params)

        if cache_ttl_seconds:
            cached = await self.response_cache.get(cache_key)
            if cached is not None:
                return cached

        for attempt in range(retries + 1):
            try:
                response = await self.client.get(path, params=dict(params or {}))
            except httpx.HTTPError as exc:
                raise FetchError(f"Fetch failed for {path}: {exc}") from exc

            if response.status_code == 429:
                if attempt == retries:
                    logger.warning("Rate limited on %s after %d attempts", path, attempt + 1)
                    raise RateLimitError()
                backoff = self.backoff_base_seconds * 2**attempt
                logger.info("Rate limited on %s, retrying in %.1fs", path, backoff)
                await self._sleep(backoff)
                continue

            if not response.is_success:
                raise FetchError(
                    f"Fetch failed {response.status_code}: {response.text}",
                    status_code=response.status_code,
                    body=response.text,
                )

            try:
                payload = response.json()
            except (json.JSONDecodeError, ValueError) as exc:
                raise FetchError(
                    f"Invalid JSON from {path}", status_code=response.status_code
                ) from exc

            if cache_ttl_seconds:
                await self.response_cache.set(cache_key, payload, cache_ttl_seconds)
            return payload

        raise FetchError(f"Retry loop exited without a response for {path}")
