import asyncio
import sys

import pytest

from tele_storefront import loader
from tele_storefront.loader import LoadStatus


class Flaky:
    """Factory that fails a fixed number of times before succeeding."""

    def __init__(self, failures: int, value: object = "page") -> None:
        self.failures = failures
        self.value = value
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"fail {self.calls}")
        return self.value


@pytest.fixture
def delays(monkeypatch) -> list[float]:
    recorded: list[float] = []

    async def fake_sleep(delay_s: float) -> None:
        recorded.append(delay_s)

    monkeypatch.setattr(loader, "_backoff_sleep", fake_sleep)
    return recorded


def test_backoff_delay_doubles() -> None:
    assert [loader.backoff_delay(i) for i in (1, 2, 3)] == [1.0, 2.0, 4.0]
    assert loader.backoff_delay(3, base_delay_s=0.5) == 2.0


@pytest.mark.asyncio
async def test_succeeds_after_transient_failures(delays) -> None:
    factory = Flaky(failures=2)
    wrapped = loader.wrap(factory, 3)

    assert await wrapped() == "page"
    assert factory.calls == 3
    assert delays == [1.0, 2.0]
    assert wrapped.status is LoadStatus.SUCCESS
    assert wrapped.attempt.retry_count == 2
    assert wrapped.attempt.error is None


@pytest.mark.asyncio
async def test_gives_up_after_max_retries(delays) -> None:
    factory = Flaky(failures=10)
    wrapped = loader.wrap(factory, 3)

    with pytest.raises(RuntimeError, match="fail 4"):
        await wrapped()

    assert factory.calls == 4
    assert delays == [1.0, 2.0, 4.0]
    assert wrapped.status is LoadStatus.ERROR
    assert wrapped.attempt.retry_count == 4
    assert str(wrapped.attempt.error) == "fail 4"


@pytest.mark.asyncio
async def test_zero_retries_fails_immediately(delays) -> None:
    factory = Flaky(failures=1)
    wrapped = loader.wrap(factory, 0)

    with pytest.raises(RuntimeError, match="fail 1"):
        await wrapped()

    assert factory.calls == 1
    assert delays == []


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_load(delays) -> None:
    gate = asyncio.Event()
    calls = 0

    async def factory() -> str:
        nonlocal calls
        calls += 1
        await gate.wait()
        return "shared"

    wrapped = loader.wrap(factory)
    first = wrapped()
    second = wrapped()
    await asyncio.sleep(0)
    assert wrapped.status is LoadStatus.LOADING
    gate.set()

    assert await asyncio.gather(first, second) == ["shared", "shared"]
    assert await wrapped() == "shared"
    assert calls == 1


@pytest.mark.asyncio
async def test_concurrent_callers_share_retries(delays) -> None:
    factory = Flaky(failures=2, value="module-X")
    wrapped = loader.wrap(factory, 3)

    results = await asyncio.gather(wrapped(), wrapped())

    assert results == ["module-X", "module-X"]
    assert factory.calls == 3
    assert delays == [1.0, 2.0]


def test_call_outside_event_loop_raises() -> None:
    factory = Flaky(failures=0)
    wrapped = loader.wrap(factory)

    with pytest.raises(RuntimeError):
        wrapped()

    assert wrapped.status is LoadStatus.PENDING
    assert not wrapped.started()
    assert factory.calls == 0


@pytest.mark.asyncio
async def test_settled_failure_is_not_retried_by_later_calls(delays) -> None:
    factory = Flaky(failures=10)
    wrapped = loader.wrap(factory, 1)

    for _ in range(2):
        with pytest.raises(RuntimeError):
            await wrapped()

    assert factory.calls == 2


@pytest.mark.asyncio
async def test_status_starts_pending() -> None:
    wrapped = loader.wrap(Flaky(failures=0))

    assert wrapped.status is LoadStatus.PENDING
    assert not wrapped.started()
    assert wrapped.attempt.max_retries == loader.DEFAULT_MAX_RETRIES

    await wrapped()
    snap = wrapped.snapshot()
    assert snap.status is LoadStatus.SUCCESS
    assert snap.started_at is not None and snap.finished_at is not None
    assert snap.finished_at >= snap.started_at


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_cancel_load(delays) -> None:
    gate = asyncio.Event()

    async def factory() -> str:
        await gate.wait()
        return "done"

    wrapped = loader.wrap(factory)
    waiter = asyncio.ensure_future(wrapped())
    await asyncio.sleep(0)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    gate.set()
    assert await wrapped() == "done"


@pytest.mark.asyncio
async def test_attempt_timeout_counts_as_failure(delays) -> None:
    calls = 0

    async def factory() -> str:
        nonlocal calls
        calls += 1
        if calls == 1:
            await asyncio.sleep(10)
        return "late"

    wrapped = loader.wrap(factory, 1, attempt_timeout_s=0.01)

    assert await wrapped() == "late"
    assert calls == 2
    assert delays == [1.0]


def test_negative_retries_rejected() -> None:
    with pytest.raises(ValueError):
        loader.wrap(Flaky(failures=0), -1)


@pytest.mark.asyncio
async def test_preload_swallows_failures(delays) -> None:
    factory = Flaky(failures=10)
    wrapped = loader.wrap(factory, 0)
    pending_before = set(loader._pending_preloads)

    assert loader.preload(wrapped) is None
    for _ in range(5):
        await asyncio.sleep(0)

    assert wrapped.status is LoadStatus.ERROR
    assert loader._pending_preloads == pending_before


@pytest.mark.asyncio
async def test_preload_warms_the_shared_load(delays) -> None:
    factory = Flaky(failures=0, value=42)
    wrapped = loader.wrap(factory)

    loader.preload(wrapped)
    assert await wrapped() == 42
    assert factory.calls == 1


@pytest.mark.asyncio
async def test_preload_ignores_synchronous_factory_error() -> None:
    def broken():
        raise RuntimeError("no awaitable")

    loader.preload(broken)


@pytest.mark.asyncio
async def test_lazy_import_resolves_attribute() -> None:
    factory = loader.lazy_import("json", "dumps")

    dumps = await factory()

    assert dumps([1]) == "[1]"
    assert factory.__qualname__ == "json:dumps"


@pytest.mark.asyncio
async def test_lazy_import_missing_module_can_be_retried(delays) -> None:
    name = "tele_storefront_missing_page_module"
    wrapped = loader.wrap(loader.lazy_import(name), 1)

    with pytest.raises(ModuleNotFoundError):
        await wrapped()

    assert wrapped.attempt.retry_count == 2
    assert name not in sys.modules
