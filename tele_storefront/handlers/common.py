"""Shared handler helpers: admin guard, per-chat rate limit, error replies."""

from __future__ import annotations

import functools
import html
import logging
import time
from typing import TYPE_CHECKING, Callable

from telegram.constants import ParseMode

from .. import config
from ..state import STORE_STATE_KEY, DebugRecorder, StoreState
from ..view import chunk

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from telegram import Update
    from telegram.ext import ContextTypes


def get_state(app) -> StoreState:
    """Retrieve or initialize the store state from application data.

    Args:
        app: The Telegram Application instance

    Returns:
        StoreState holding carts, wishlists, metrics and page loaders.
    """
    return app.bot_data.setdefault(STORE_STATE_KEY, StoreState())


def get_state_and_recorder(context) -> tuple[StoreState, DebugRecorder]:
    state = get_state(context.application)
    return state, state.debug_recorder()


def chat_id_of(update: "Update") -> int | None:
    chat = getattr(update, "effective_chat", None)
    return getattr(chat, "id", None)


async def record_error(
    recorder,
    page: str,
    message: str,
    exc: Exception,
    reply,
    log: logging.Logger | None = None,
) -> str:
    """Log, record and report a handler failure. Returns the error id."""
    (log or logger).exception(message)
    error_id = recorder.record(page, message, str(exc))
    await reply(
        f"❌ Error: {html.escape(str(exc))}\n<i>Reference: {html.escape(str(error_id))}</i>",
        parse_mode=ParseMode.HTML,
    )
    return error_id


def is_admin(update: "Update") -> bool:
    """Admin pages are limited to private chats listed in ADMIN_CHAT_IDS."""
    if not config.ADMINS:
        return False
    chat_id = chat_id_of(update)
    if chat_id is None:
        return False
    user_id = getattr(getattr(update, "effective_user", None), "id", None)
    if user_id is None:
        return chat_id in config.ADMINS
    return chat_id == user_id and user_id in config.ADMINS


async def guard_admin(update: "Update", context: "ContextTypes.DEFAULT_TYPE") -> bool:
    if is_admin(update):
        return True
    if update and update.effective_chat:
        await update.effective_chat.send_message("⛔ Not authorized")
    return False


def rate_limit(func: Callable, name: str | None = None) -> Callable:
    """Enforce a per-chat minimum interval between commands.

    Args:
        func: The async handler to wrap
        name: Metrics key; defaults to the function name without "cmd_"

    Returns:
        Wrapped handler recording latency and outcome in the page metrics.
    """

    command_name = name or func.__name__.removeprefix("cmd_")

    @functools.wraps(func)
    async def wrapper(
        update: "Update", context: "ContextTypes.DEFAULT_TYPE", *args, **kwargs
    ):
        state = get_state(context.application)
        chat_id = chat_id_of(update)
        now = time.monotonic()
        last = state.last_command_ts.get(chat_id, 0.0) if chat_id is not None else 0.0
        elapsed = now - last

        if last and elapsed < config.RATE_LIMIT_S:
            try:
                if update and getattr(update, "effective_message", None):
                    await update.effective_message.reply_text(
                        f"⏱ Slow down: please wait {config.RATE_LIMIT_S - elapsed:.1f}s",
                    )
            except Exception as e:
                logger.debug("rate-limit notice failed to send: %s", e)
            state.record_rate_limited(command_name)
            return

        if chat_id is not None:
            state.last_command_ts[chat_id] = now
        start = time.perf_counter()
        try:
            result = await func(update, context, *args, **kwargs)
        except Exception as e:
            state.record_page(
                command_name, time.perf_counter() - start, ok=False, error_msg=str(e)
            )
            raise
        state.record_page(command_name, time.perf_counter() - start, ok=True, error_msg=None)
        return result

    return wrapper


async def reply_html(update: "Update", text: str) -> None:
    for part in chunk(text):
        await update.message.reply_text(part, parse_mode=ParseMode.HTML)


async def reply_usage(update: "Update", usage: str) -> None:
    await update.message.reply_text(
        f"<i>Usage:</i> {html.escape(usage)}", parse_mode=ParseMode.HTML
    )
