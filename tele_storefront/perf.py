"""Small call-shaping helpers: memoize with TTL, debounce on the event loop."""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections import OrderedDict
from threading import Lock
from typing import Any, Callable

logger = logging.getLogger(__name__)

_MISSING = object()


def _make_key(args: tuple, kwargs: dict) -> Any:
    key = (args, tuple(sorted(kwargs.items())))
    try:
        hash(key)
    except TypeError:
        return repr(key)
    return key


def memoize(maxsize: int = 100, ttl_s: float | None = None) -> Callable:
    """Cache results by arguments, evicting the oldest entry past `maxsize`.

    Exceptions are not cached. Entries older than `ttl_s` are recomputed.
    The wrapped function gains `cache_clear()` and `cache_len()`.
    """

    def decorator(func: Callable) -> Callable:
        cache: OrderedDict[Any, tuple[float, Any]] = OrderedDict()
        lock = Lock()

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            key = _make_key(args, kwargs)
            now = time.monotonic()
            with lock:
                entry = cache.get(key, _MISSING)
                if entry is not _MISSING:
                    stored_at, value = entry
                    if ttl_s is None or (now - stored_at) < ttl_s:
                        return value
                    cache.pop(key, None)

            value = func(*args, **kwargs)

            with lock:
                cache[key] = (now, value)
                while len(cache) > maxsize:
                    cache.popitem(last=False)
            return value

        def cache_clear() -> None:
            with lock:
                cache.clear()

        def cache_len() -> int:
            with lock:
                return len(cache)

        wrapper.cache_clear = cache_clear
        wrapper.cache_len = cache_len
        return wrapper

    return decorator


class _Debounced:
    def __init__(self, func: Callable, wait_s: float) -> None:
        functools.update_wrapper(self, func)
        self._func = func
        self._wait_s = wait_s
        self._handle: asyncio.TimerHandle | None = None
        self._args: tuple = ()
        self._kwargs: dict = {}

    def __call__(self, *args, **kwargs) -> None:
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to schedule on: run now.
            self._func(*args, **kwargs)
            return
        self._args, self._kwargs = args, kwargs
        self._handle = loop.call_later(self._wait_s, self._fire)

    def _fire(self) -> None:
        self._handle = None
        args, kwargs = self._args, self._kwargs
        self._args, self._kwargs = (), {}
        try:
            self._func(*args, **kwargs)
        except Exception:
            logger.exception("Debounced call to %s failed", self._func.__name__)

    def pending(self) -> bool:
        return self._handle is not None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> None:
        """Run a pending call immediately."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._fire()


def debounce(wait_s: float) -> Callable[[Callable], _Debounced]:
    """Collapse bursts of calls into one call `wait_s` after the last.

    Example:
        >>> save_soon = debounce(1.0)(state.save)
        >>> save_soon(); save_soon()  # one save, one second later
    """

    def decorator(func: Callable) -> _Debounced:
        return _Debounced(func, wait_s)

    return decorator
