from __future__ import annotations

from redis import Redis
from rq import Queue
from rq.job import Job

from watchdesk.config.settings import settings
from watchdesk.jobs.news_digest import run_news_digest


def get_queue(name: str | None = None, connection: Redis | None = None) -> Queue:
    return Queue(
        name=name or settings.digest_queue_name,
        connection=connection if connection is not None else Redis.from_url(settings.redis_url),
    )


def enqueue_news_digest(user_id: str, queue: Queue | None = None) -> Job:
    """Queue a digest rebuild; the worker stores the result for GET /watchlist/digest."""
    if queue is None:
        queue = get_queue()
    return queue.enqueue(
        run_news_digest,
        user_id=user_id,
        job_timeout=settings.digest_job_timeout_seconds,
        result_ttl=settings.digest_ttl_seconds,
        description=f"news digest for {user_id}",
    )
