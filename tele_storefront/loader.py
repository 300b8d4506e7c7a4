"""Resilient deferred loading.

A deferred factory is any zero-argument callable returning an awaitable.
`wrap` turns one into a `ResilientLoader`: the first call starts a single
load task, failed attempts are retried with exponential backoff and every
caller observes the same settlement.
"""

from __future__ import annotations

import asyncio
import dataclasses
import importlib
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, TypeVar

__all__ = [
    "LoadStatus",
    "LoadAttempt",
    "ResilientLoader",
    "wrap",
    "preload",
    "backoff_delay",
    "lazy_import",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_BASE_DELAY_S",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_S = 1.0

# Strong references to fire-and-forget preloads until they settle.
_pending_preloads: set[asyncio.Future] = set()


class LoadStatus(str, Enum):
    PENDING = "pending"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class LoadAttempt:
    """Progress of one wrapped factory.

    `retry_count` counts failed attempts, so at most `max_retries + 1`
    attempts are made in total.
    """

    max_retries: int
    status: LoadStatus = LoadStatus.PENDING
    result: Any = None
    error: BaseException | None = None
    retry_count: int = 0
    started_at: float | None = None
    finished_at: float | None = None

    @property
    def terminal(self) -> bool:
        return self.status in (LoadStatus.SUCCESS, LoadStatus.ERROR)


def backoff_delay(retry: int, base_delay_s: float = DEFAULT_BASE_DELAY_S) -> float:
    """Return the wait before retry number `retry` (1-indexed).

    Example:
        >>> [backoff_delay(i) for i in (1, 2, 3)]
        [1.0, 2.0, 4.0]
    """
    return base_delay_s * (2 ** (retry - 1))


async def _backoff_sleep(delay_s: float) -> None:
    await asyncio.sleep(delay_s)


class ResilientLoader(Generic[T]):
    """Memoizing, retrying wrapper around a deferred factory."""

    def __init__(
        self,
        factory: Callable[[], Awaitable[T]],
        max_retries: int = DEFAULT_MAX_RETRIES,
        *,
        name: str | None = None,
        base_delay_s: float = DEFAULT_BASE_DELAY_S,
        attempt_timeout_s: float | None = None,
    ) -> None:
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.factory = factory
        self.name = name or getattr(factory, "__qualname__", None) or repr(factory)
        self.base_delay_s = base_delay_s
        self.attempt_timeout_s = attempt_timeout_s or None
        self._attempt = LoadAttempt(max_retries=max_retries)
        self._task: asyncio.Task | None = None

    def __repr__(self) -> str:
        return (
            f"ResilientLoader(name={self.name!r}, status={self._attempt.status.value}, "
            f"retry_count={self._attempt.retry_count})"
        )

    @property
    def max_retries(self) -> int:
        return self._attempt.max_retries

    @property
    def attempt(self) -> LoadAttempt:
        return self._attempt

    @property
    def status(self) -> LoadStatus:
        return self._attempt.status

    def snapshot(self) -> LoadAttempt:
        return dataclasses.replace(self._attempt)

    def started(self) -> bool:
        return self._task is not None

    def done(self) -> bool:
        return self._attempt.terminal

    def __call__(self) -> asyncio.Future:
        """Start the load on first use and return a future for its outcome.

        Raises:
            RuntimeError: when called outside a running event loop.
        """
        if self._task is None:
            loop = asyncio.get_running_loop()
            self._attempt.status = LoadStatus.LOADING
            self._attempt.started_at = time.monotonic()
            self._task = loop.create_task(self._load())
        # Shielded so a cancelled caller leaves the shared load running.
        return asyncio.shield(self._task)

    def cancel(self) -> bool:
        """Cancel an in-flight load. Used on shutdown only."""
        if self._task is None or self._task.done():
            return False
        return self._task.cancel()

    async def _invoke(self) -> T:
        if self.attempt_timeout_s:
            return await asyncio.wait_for(self.factory(), timeout=self.attempt_timeout_s)
        return await self.factory()

    async def _load(self) -> T:
        attempt = self._attempt
        while True:
            try:
                value = await self._invoke()
            except Exception as exc:
                attempt.error = exc
                attempt.retry_count += 1
                if attempt.retry_count <= attempt.max_retries:
                    delay = backoff_delay(attempt.retry_count, self.base_delay_s)
                    logger.warning(
                        "%s load failed, retrying (%d/%d) in %.1fs: %s",
                        self.name,
                        attempt.retry_count,
                        attempt.max_retries,
                        delay,
                        exc,
                    )
                    await _backoff_sleep(delay)
                    continue
                attempt.status = LoadStatus.ERROR
                attempt.finished_at = time.monotonic()
                logger.error(
                    "%s load failed after %d attempt(s): %s",
                    self.name,
                    attempt.retry_count,
                    exc,
                )
                raise
            attempt.status = LoadStatus.SUCCESS
            attempt.result = value
            attempt.error = None
            attempt.finished_at = time.monotonic()
            if attempt.retry_count:
                logger.info(
                    "%s loaded after %d retr%s",
                    self.name,
                    attempt.retry_count,
                    "y" if attempt.retry_count == 1 else "ies",
                )
            return value


def wrap(
    factory: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    *,
    name: str | None = None,
    base_delay_s: float = DEFAULT_BASE_DELAY_S,
    attempt_timeout_s: float | None = None,
) -> ResilientLoader[T]:
    """Wrap a deferred factory with retry, backoff and memoization.

    Args:
        factory: Zero-argument callable returning an awaitable.
        max_retries: Retries allowed after the first failed attempt.
        name: Label used in logs and diagnostics.
        base_delay_s: Wait before the first retry; doubles for each retry.
        attempt_timeout_s: Optional per-attempt timeout. None waits forever.

    Returns:
        A callable with the same shape as `factory`. Every call returns a
        future for the one shared load.

    Example:
        >>> page = wrap(lazy_import("tele_storefront.pages.home", "render"))
        >>> render = await page()
    """
    return ResilientLoader(
        factory,
        max_retries,
        name=name,
        base_delay_s=base_delay_s,
        attempt_timeout_s=attempt_timeout_s,
    )


def _discard_outcome(future: asyncio.Future) -> None:
    _pending_preloads.discard(future)
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.debug("Preload failed (ignored): %s", exc)


def preload(factory: Callable[[], Awaitable[Any]]) -> None:
    """Start `factory` for its caching side effect and ignore the outcome.

    Must be called from a running event loop. Never raises and never waits.
    """
    try:
        future = asyncio.ensure_future(factory())
    except Exception as exc:
        logger.debug("Preload failed to start (ignored): %s", exc)
        return
    _pending_preloads.add(future)
    future.add_done_callback(_discard_outcome)


def lazy_import(module_path: str, attr: str | None = None) -> Callable[[], Awaitable[Any]]:
    """Return a deferred factory importing `module_path` in a worker thread.

    A failed import leaves nothing behind in `sys.modules`, so the next
    attempt imports from scratch.
    """

    def _import() -> Any:
        importlib.invalidate_caches()
        module = importlib.import_module(module_path)
        if attr is None:
            return module
        return getattr(module, attr)

    async def _factory() -> Any:
        return await asyncio.to_thread(_import)

    _factory.__qualname__ = f"{module_path}:{attr}" if attr else module_path
    return _factory
