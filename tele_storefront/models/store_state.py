"""Storefront runtime state (carts, wishlists, metrics, page loaders)."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from ..perf import debounce
from ..registry import LazyRegistry
from .cart import Cart
from .debug import DebugEntry, DebugRecorder
from .metrics import PageMetrics

logger = logging.getLogger(__name__)

MAX_LATENCY_SAMPLES = 200
_DEBUG_TTL_S = 60 * 60
_DEBUG_MAX_PER_PAGE = 50
_SAVE_DEBOUNCE_S = 1.0
MAX_COMPARE_ITEMS = 4


@dataclass
class StoreState:
    """Runtime state shared by all handlers through `bot_data`."""

    registry: LazyRegistry = field(default_factory=LazyRegistry)
    carts: dict[int, Cart] = field(default_factory=dict)
    wishlists: dict[int, set[str]] = field(default_factory=dict)
    comparisons: dict[int, list[str]] = field(default_factory=dict)
    affiliate_codes: dict[int, str] = field(default_factory=dict)

    page_metrics: dict[str, PageMetrics] = field(default_factory=dict)
    debug_cache: dict[str, list[DebugEntry]] = field(default_factory=dict)
    # chat_id -> monotonic timestamp of the last accepted command
    last_command_ts: dict[int, float] = field(default_factory=dict)
    tasks: dict[str, object] = field(default_factory=dict)

    state_file: Path | None = None
    _debug_recorder: DebugRecorder | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.save_soon = debounce(_SAVE_DEBOUNCE_S)(self._save_state)

    # Carts, wishlists, comparisons

    def cart_for(self, chat_id: int) -> Cart:
        return self.carts.setdefault(chat_id, Cart())

    def add_to_cart(
        self, chat_id: int, product_id: str, name: str, price: float, quantity: int = 1
    ) -> Cart:
        cart = self.cart_for(chat_id)
        cart.add(product_id, name, price, quantity)
        self.save_soon()
        return cart

    def remove_from_cart(
        self, chat_id: int, product_id: str, quantity: int | None = None
    ) -> bool:
        removed = self.cart_for(chat_id).remove(product_id, quantity)
        if removed:
            self.save_soon()
        return removed

    def clear_cart(self, chat_id: int) -> None:
        self.cart_for(chat_id).clear()
        self.save_soon()

    def toggle_wishlist(self, chat_id: int, product_id: str) -> bool:
        """Toggle a product on the wishlist. Returns True if now listed."""
        wished = self.wishlists.setdefault(chat_id, set())
        if product_id in wished:
            wished.discard(product_id)
            self.save_soon()
            return False
        wished.add(product_id)
        self.save_soon()
        return True

    def wishlist_for(self, chat_id: int) -> set[str]:
        return set(self.wishlists.get(chat_id, set()))

    def add_to_comparison(self, chat_id: int, product_id: str) -> list[str]:
        """Queue a product for comparison, dropping the oldest past the limit."""
        items = self.comparisons.setdefault(chat_id, [])
        if product_id not in items:
            items.append(product_id)
            del items[:-MAX_COMPARE_ITEMS]
            self.save_soon()
        return list(items)

    def comparison_for(self, chat_id: int) -> list[str]:
        return list(self.comparisons.get(chat_id, []))

    def remove_from_comparison(self, chat_id: int, *product_ids: str) -> None:
        items = self.comparisons.get(chat_id)
        if not items or not product_ids:
            return
        kept = [pid for pid in items if pid not in product_ids]
        if len(kept) != len(items):
            self.comparisons[chat_id] = kept
            self.save_soon()

    def clear_comparison(self, chat_id: int) -> None:
        if self.comparisons.pop(chat_id, None):
            self.save_soon()

    # Affiliate codes

    def set_affiliate_code(self, chat_id: int, code: str) -> None:
        self.affiliate_codes[chat_id] = code
        self.save_soon()

    def affiliate_code_for(self, chat_id: int) -> str | None:
        return self.affiliate_codes.get(chat_id)

    def clear_affiliate_code(self, chat_id: int) -> bool:
        removed = self.affiliate_codes.pop(chat_id, None) is not None
        if removed:
            self.save_soon()
        return removed

    # Metrics

    def metrics_for(self, name: str) -> PageMetrics:
        return self.page_metrics.setdefault(name, PageMetrics())

    def record_page(
        self, name: str, latency_s: float, ok: bool, error_msg: str | None
    ) -> None:
        metrics = self.metrics_for(name)
        metrics.count += 1
        metrics.last_run_ts = time.time()
        if ok:
            metrics.success += 1
        else:
            metrics.error += 1
            metrics.last_error = error_msg
        metrics.total_latency_s += latency_s
        metrics.max_latency_s = max(metrics.max_latency_s, latency_s)
        metrics.latencies_s.append(latency_s)
        if len(metrics.latencies_s) > MAX_LATENCY_SAMPLES:
            metrics.latencies_s.pop(0)

    def record_rate_limited(self, name: str) -> None:
        self.metrics_for(name).rate_limited += 1

    def record_load_failure(self, name: str, error_msg: str) -> None:
        metrics = self.metrics_for(name)
        metrics.load_failures += 1
        metrics.last_error = error_msg

    # Debug entries

    def _prune_debug(self, page: str) -> None:
        entries = self.debug_cache.get(page, [])
        if not entries:
            return
        cutoff = time.time() - _DEBUG_TTL_S
        kept = [entry for entry in entries if entry.timestamp >= cutoff]
        if kept:
            self.debug_cache[page] = kept[-_DEBUG_MAX_PER_PAGE:]
        else:
            self.debug_cache.pop(page, None)

    def add_debug(
        self,
        page: str,
        message: str,
        details: str | None = None,
        error_id: str | None = None,
    ) -> None:
        if not page:
            return
        self._prune_debug(page)
        entry = DebugEntry(
            timestamp=time.time(), message=message, details=details, error_id=error_id
        )
        entries = self.debug_cache.setdefault(page, [])
        entries.append(entry)
        self.debug_cache[page] = entries[-_DEBUG_MAX_PER_PAGE:]

    def get_debug(self, page: str | None = None) -> dict[str, list[DebugEntry]]:
        if page:
            self._prune_debug(page)
            entries = list(self.debug_cache.get(page, []))
            return {page: entries} if entries else {}
        for key in list(self.debug_cache.keys()):
            self._prune_debug(key)
        return {key: list(entries) for key, entries in self.debug_cache.items() if entries}

    def debug_recorder(self) -> DebugRecorder:
        if self._debug_recorder is None:
            self._debug_recorder = DebugRecorder(self)
        return self._debug_recorder

    # Persistence

    def _save_state(self) -> None:
        """Persist carts, wishlists, comparisons and affiliate codes to disk."""
        if self.state_file is None:
            return
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            data = {
                "carts": {
                    str(chat_id): cart.to_list()
                    for chat_id, cart in self.carts.items()
                    if not cart.is_empty()
                },
                "wishlists": {
                    str(chat_id): sorted(items)
                    for chat_id, items in self.wishlists.items()
                    if items
                },
                "comparisons": {
                    str(chat_id): items
                    for chat_id, items in self.comparisons.items()
                    if items
                },
                "affiliates": {
                    str(chat_id): code for chat_id, code in self.affiliate_codes.items()
                },
            }
            self.state_file.write_text(json.dumps(data, indent=2))
        except Exception:
            logger.exception("Failed to save store state")

    def load_state(self) -> None:
        """Load persisted shopper state from disk."""
        if self.state_file is None:
            return
        try:
            if not self.state_file.exists():
                return
            data = json.loads(self.state_file.read_text())
            self.carts = {
                int(chat_id): Cart.from_list(rows)
                for chat_id, rows in (data.get("carts") or {}).items()
            }
            self.wishlists = {
                int(chat_id): set(items)
                for chat_id, items in (data.get("wishlists") or {}).items()
            }
            self.comparisons = {
                int(chat_id): list(items)[-MAX_COMPARE_ITEMS:]
                for chat_id, items in (data.get("comparisons") or {}).items()
            }
            self.affiliate_codes = {
                int(chat_id): str(code)
                for chat_id, code in (data.get("affiliates") or {}).items()
            }
            logger.info("Loaded store state from %s", self.state_file)
        except Exception:
            logger.exception("Failed to load store state")


STORE_STATE_KEY = "state"
