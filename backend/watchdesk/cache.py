from __future__ import annotations

import json
import logging
from typing import Any

from redis import Redis
from redis.asyncio import Redis as AsyncRedis

from watchdesk.config.settings import settings
from watchdesk.schemas.news import NewsDigest

logger = logging.getLogger(__name__)


class ResponseCache:
    """Shared HTTP-level cache of upstream JSON payloads.

    Best effort: any Redis failure reads as a miss and skips the write.
    """

    def __init__(self, client: AsyncRedis | None) -> None:
        self.client = client

    @classmethod
    def from_url(cls, redis_url: str) -> "ResponseCache":
        return cls(AsyncRedis.from_url(redis_url))

    async def get(self, cache_key: str) -> Any | None:
        if self.client is None:
            return None
        try:
            raw = await self.client.get(cache_key)
        except Exception as exc:
            logger.debug("Response cache read failed for %s: %s", cache_key, exc)
            return None

        if not raw:
            return None

        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError, ValueError):
            return None

    async def set(self, cache_key: str, payload: Any, ttl_seconds: int) -> None:
        if self.client is None:
            return None
        try:
            await self.client.setex(cache_key, ttl_seconds, json.dumps(payload))
        except Exception as exc:
            logger.debug("Response cache write failed for %s: %s", cache_key, exc)
            return None

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()


class DigestStore:
    """Per-user news digests written by the background job.

    Mirrors ResponseCache on the sync client rq workers already hold:
    failures are logged and read as "no digest yet".
    """

    key_prefix = "digest"

    def __init__(self, client: Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, redis_url: str) -> "DigestStore":
        return cls(Redis.from_url(redis_url))

    def key_for(self, user_id: str) -> str:
        return f"{self.key_prefix}:{user_id}"

    def load(self, user_id: str) -> NewsDigest | None:
        try:
            raw = self.client.get(self.key_for(user_id))
        except Exception as exc:
            logger.warning("Digest read failed for %s: %s", user_id, exc)
            return None

        if not raw:
            return None

        try:
            return NewsDigest.model_validate_json(raw)
        except ValueError as exc:
            logger.warning("Discarding unreadable digest for %s: %s", user_id, exc)
            return None

    def save(self, digest: NewsDigest, ttl_seconds: int) -> bool:
        try:
            self.client.setex(
                self.key_for(digest.user_id), ttl_seconds, digest.model_dump_json()
            )
        except Exception as exc:
            logger.warning("Digest write failed for %s: %s", digest.user_id, exc)
            return False
        return True


def digest_store() -> DigestStore:
    return DigestStore.from_url(settings.redis_url)


def get_digest(user_id: str) -> NewsDigest | None:
    return digest_store().load(user_id)


def set_digest(digest: NewsDigest, ttl_seconds: int) -> bool:
    return digest_store().save(digest, ttl_seconds)
