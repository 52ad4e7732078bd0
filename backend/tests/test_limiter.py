import asyncio

import pytest

from watchdesk.limiter import ConcurrencyLimiter


def test_limiter_never_exceeds_bound_for_a_burst() -> None:
    limiter = ConcurrencyLimiter(8)
    running = 0
    peak = 0

    async def unit(index: int) -> int:
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        running -= 1
        return index

    async def main() -> list[int]:
        return await asyncio.gather(*(limiter.limit(unit, index) for index in range(50)))

    results = asyncio.run(main())

    assert results == list(range(50))
    assert peak == 8
    assert limiter.active == 0
    assert limiter.pending == 0


def test_limiter_admits_queued_units_in_fifo_order() -> None:
    limiter = ConcurrencyLimiter(1)
    started: list[int] = []

    async def unit(index: int) -> None:
        started.append(index)
        await asyncio.sleep(0)

    async def main() -> None:
        await asyncio.gather(*(limiter.limit(unit, index) for index in range(5)))

    asyncio.run(main())

    assert started == [0, 1, 2, 3, 4]


def test_failure_does_not_block_other_units() -> None:
    limiter = ConcurrencyLimiter(2)

    async def boom() -> None:
        await asyncio.sleep(0)
        raise RuntimeError("boom")

    async def ok(value: str) -> str:
        await asyncio.sleep(0)
        return value

    async def main() -> list:
        return await asyncio.gather(
            limiter.limit(boom),
            limiter.limit(ok, "a"),
            limiter.limit(boom),
            limiter.limit(ok, "b"),
            return_exceptions=True,
        )

    results = asyncio.run(main())

    assert isinstance(results[0], RuntimeError)
    assert results[1] == "a"
    assert isinstance(results[2], RuntimeError)
    assert results[3] == "b"
    assert limiter.active == 0


def test_cancelled_waiter_does_not_leak_a_slot() -> None:
    limiter = ConcurrencyLimiter(1)

    async def main() -> str:
        release = asyncio.Event()

        async def holder() -> None:
            await release.wait()

        async def quick() -> str:
            return "done"

        first = asyncio.create_task(limiter.limit(holder))
        await asyncio.sleep(0)
        waiting = asyncio.create_task(limiter.limit(quick))
        await asyncio.sleep(0)
        assert limiter.pending == 1

        waiting.cancel()
        await asyncio.sleep(0)
        release.set()
        await first

        assert limiter.active == 0
        return await limiter.limit(quick)

    assert asyncio.run(main()) == "done"


def test_limiter_rejects_non_positive_bound() -> None:
    with pytest.raises(ValueError):
        ConcurrencyLimiter(0)
