"""Dispatch layer: resolves page handlers through the lazy registry."""

from __future__ import annotations

import logging
from typing import Callable

from telegram.constants import ParseMode

from .. import view
from ..commands import PAGES
from ..models.page_spec import PageSpec
from . import meta
from .common import get_state_and_recorder, guard_admin, rate_limit, record_error

logger = logging.getLogger(__name__)


def page_handler(spec: PageSpec) -> Callable:
    """Build the command handler for one page.

    The page callable is loaded on first use. A page that cannot be loaded
    after all retries produces an apology with an error id instead of an
    exception.
    """

    async def handler(update, context) -> None:
        if spec.admin and not await guard_admin(update, context):
            return
        state, recorder = get_state_and_recorder(context)
        try:
            render = await state.registry.load(spec.name)
        except Exception as exc:
            state.record_load_failure(spec.name, str(exc))
            error_id = recorder.record(
                spec.name, "page failed to load", f"{type(exc).__name__}: {exc}"
            )
            logger.error("Page %s unavailable (%s): %s", spec.name, error_id, exc)
            await update.message.reply_text(
                view.render_page_unavailable(spec.name, error_id),
                parse_mode=ParseMode.HTML,
            )
            return

        try:
            await render(update, context)
        except Exception as exc:
            await record_error(
                recorder,
                spec.name,
                f"{spec.name} page failed",
                exc,
                update.message.reply_text,
                log=logger,
            )
            raise
        if spec.prefetch:
            state.registry.preload(*spec.prefetch)

    handler.__name__ = f"page_{spec.name}"
    handler.__qualname__ = handler.__name__
    return handler


def build_page_handlers(pages: tuple[PageSpec, ...] = PAGES) -> dict[str, Callable]:
    return {spec.name: rate_limit(page_handler(spec), name=spec.name) for spec in pages}


# Meta
cmd_start = rate_limit(meta.cmd_start, name="start")
cmd_help = rate_limit(meta.cmd_help, name="help")
cmd_whoami = rate_limit(meta.cmd_whoami, name="whoami")
cmd_retry = rate_limit(meta.cmd_retry, name="retry")
cmd_loaders = rate_limit(meta.cmd_loaders, name="loaders")
cmd_metrics = rate_limit(meta.cmd_metrics, name="metrics")
cmd_debug = rate_limit(meta.cmd_debug, name="debug")

META_HANDLERS: dict[str, Callable] = {
    "start": cmd_start,
    "help": cmd_help,
    "whoami": cmd_whoami,
    "retry": cmd_retry,
    "loaders": cmd_loaders,
    "metrics": cmd_metrics,
    "debug": cmd_debug,
}
