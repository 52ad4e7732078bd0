from typing import Any, Callable

import httpx
import pytest

from watchdesk.cache import ResponseCache
from watchdesk.config.settings import Settings
from watchdesk.services.context import MarketDataContext, build_market_context


class FakeUpstream:
    """Stands in for the Finnhub REST API behind an httpx.MockTransport."""

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.calls: list[httpx.Request] = []

    def route(self, path: str, *responses: Any) -> None:
        """Register (status, payload) pairs served in order, the last one repeating.

        A callable receives the request and returns (status, payload).
        """
        self.routes[path] = list(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path.removeprefix("/api/v1")
        responses = self.routes.get(path)
        if not responses:
            return httpx.Response(404, text="no route")
        entry = responses.pop(0) if len(responses) > 1 else responses[0]
        if callable(entry):
            entry = entry(request)
        status_code, payload = entry
        if isinstance(payload, str):
            return httpx.Response(status_code, text=payload)
        return httpx.Response(status_code, json=payload)

    def count(self, path: str, **params: str) -> int:
        return sum(
            1
            for request in self.calls
            if request.url.path.removeprefix("/api/v1") == path
            and all(request.url.params.get(key) == value for key, value in params.items())
        )


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAsyncRedis:
    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.expirations: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = value
        self.expirations[key] = ttl

    async def aclose(self) -> None:
        return None


def make_settings(api_key: str | None = "test-token") -> Settings:
    test_settings = Settings()
    test_settings.providers.finnhub_api_key = api_key
    test_settings.providers.finnhub_base_url = "https://finnhub.test/api/v1"
    test_settings.market_data.response_cache_enabled = False
    return test_settings


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_context(
    upstream: FakeUpstream, sleep_recorder: SleepRecorder, clock: FakeClock
) -> Callable[..., MarketDataContext]:
    def factory(
        settings: Settings | None = None, response_cache: ResponseCache | None = None
    ) -> MarketDataContext:
        return build_market_context(
            settings or make_settings(),
            transport=httpx.MockTransport(upstream.handler),
            response_cache=response_cache or ResponseCache(None),
            sleep=sleep_recorder,
            clock=clock,
        )

    return factory
