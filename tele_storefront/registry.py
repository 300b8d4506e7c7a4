"""Registry of named deferred factories, built once at startup."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterator

from . import loader
from .loader import LoadAttempt, LoadStatus, ResilientLoader

logger = logging.getLogger(__name__)

Factory = Callable[[], Awaitable[Any]]


class LazyRegistry:
    """Maps names to `ResilientLoader`s sharing one retry policy."""

    def __init__(
        self,
        max_retries: int = loader.DEFAULT_MAX_RETRIES,
        base_delay_s: float = loader.DEFAULT_BASE_DELAY_S,
        attempt_timeout_s: float | None = None,
    ) -> None:
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.max_retries = max_retries
        self.base_delay_s = base_delay_s
        self.attempt_timeout_s = attempt_timeout_s
        self._factories: dict[str, tuple[Factory, int]] = {}
        self._loaders: dict[str, ResilientLoader] = {}
        # names with a warm-up in flight
        self._warming: set[str] = set()

    def __contains__(self, name: object) -> bool:
        return name in self._loaders

    def __iter__(self) -> Iterator[str]:
        return iter(self._loaders)

    def __len__(self) -> int:
        return len(self._loaders)

    def names(self) -> list[str]:
        return list(self._loaders)

    def _build(self, name: str) -> ResilientLoader:
        factory, max_retries = self._factories[name]
        return loader.wrap(
            factory,
            max_retries,
            name=name,
            base_delay_s=self.base_delay_s,
            attempt_timeout_s=self.attempt_timeout_s,
        )

    def register(
        self, name: str, factory: Factory, max_retries: int | None = None
    ) -> ResilientLoader:
        if name in self._factories:
            raise ValueError(f"'{name}' is already registered")
        retries = self.max_retries if max_retries is None else max_retries
        self._factories[name] = (factory, retries)
        self._loaders[name] = self._build(name)
        return self._loaders[name]

    def get(self, name: str) -> ResilientLoader:
        try:
            return self._loaders[name]
        except KeyError:
            raise KeyError(f"Unknown deferred value: {name}") from None

    async def load(self, name: str) -> Any:
        return await self.get(name)()

    def preload(self, *names: str) -> None:
        """Warm the named factories without waiting. Failures are ignored.

        The raw factory runs once, outside the named loader, so a failed
        warm-up is never retried and never settles the loader. A later
        `load` still gets its full retry budget.
        """
        for name in names:
            entry = self._loaders.get(name)
            if entry is None:
                logger.debug("Preload skipped for unknown name %s", name)
                continue
            if entry.started() or name in self._warming:
                continue
            self._warming.add(name)
            loader.preload(self._warm_factory(name))

    def _warm_factory(self, name: str) -> Factory:
        factory = self._factories[name][0]

        async def _warm() -> Any:
            try:
                return await factory()
            finally:
                self._warming.discard(name)

        return _warm

    def reset(self, name: str) -> ResilientLoader:
        """Replace a loader that gave up with a fresh one.

        Loaders that are pending, loading or loaded are left alone.
        """
        current = self.get(name)
        if current.status is not LoadStatus.ERROR:
            return current
        logger.info("Resetting failed loader %s", name)
        fresh = self._build(name)
        self._loaders[name] = fresh
        return fresh

    def snapshot(self) -> dict[str, LoadAttempt]:
        return {name: entry.snapshot() for name, entry in self._loaders.items()}

    async def aclose(self) -> None:
        """Cancel loads still in flight."""
        cancelled = [name for name, entry in self._loaders.items() if entry.cancel()]
        if cancelled:
            logger.info("Cancelled %d in-flight load(s)", len(cancelled))
            # Let cancellations propagate before the loop goes away.
            await asyncio.sleep(0)
