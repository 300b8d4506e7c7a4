"""Compatibility exports for StoreState and debug helpers."""

from __future__ import annotations

from .models.debug import DebugRecorder
from .models.store_state import STORE_STATE_KEY, StoreState

__all__ = ["STORE_STATE_KEY", "StoreState", "DebugRecorder"]
