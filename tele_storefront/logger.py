"""Logging helpers for tele_storefront."""

import logging
import os

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_QUIET = ("httpx", "httpcore", "telegram", "urllib3")


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once. LOG_LEVEL applies when `level` is None."""
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    resolved = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
    root.setLevel(resolved)

    # Per-request HTTP logs stay at WARNING.
    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)
    # Retry warnings from the page loader are always visible.
    logging.getLogger("tele_storefront.loader").setLevel(min(resolved, logging.WARNING))


__all__ = ["setup_logging"]
