"""Entrypoint for running the storefront bot from the package.

This module wires up the Application, registers page handlers and runs polling.
"""

from __future__ import annotations

import asyncio
import logging

from telegram import BotCommand
from telegram.ext import Application, CommandHandler

from . import config
from .commands import CRITICAL_PAGES, PAGES, build_registry
from .handlers import dispatch
from .handlers.common import get_state
from .handlers.meta import META_HELP
from .logger import setup_logging
from .state import STORE_STATE_KEY, StoreState

logger = logging.getLogger(__name__)

_TASK_PRELOAD = "preload_critical"


def build_state() -> StoreState:
    state = StoreState(registry=build_registry(PAGES), state_file=config.settings.STATE_FILE)
    state.load_state()
    return state


def build_application() -> Application:
    if config.TOKEN is None:
        raise RuntimeError("BOT_TOKEN environment variable is not set")

    app = (
        Application.builder()
        .token(config.TOKEN)
        .post_init(on_startup)
        .post_shutdown(on_shutdown)
        .build()
    )
    app.bot_data[STORE_STATE_KEY] = build_state()

    for name, fn in dispatch.META_HANDLERS.items():
        app.add_handler(CommandHandler(name, fn))

    page_handlers = dispatch.build_page_handlers(PAGES)
    for spec in PAGES:
        triggers = [spec.name, *spec.aliases]
        app.add_handler(CommandHandler(triggers, page_handlers[spec.name]))

    app.add_error_handler(on_error)
    return app


async def _preload_critical(app: Application, delay_s: float) -> None:
    await asyncio.sleep(delay_s)
    get_state(app).registry.preload(*CRITICAL_PAGES)
    logger.info("Preloading %s", ", ".join(CRITICAL_PAGES))


async def register_bot_commands(app: Application) -> None:
    """Register public commands for Telegram autocomplete."""
    try:
        commands = [
            BotCommand(spec.name, spec.description) for spec in PAGES if not spec.admin
        ]
        commands.extend(BotCommand(name, desc) for name, _, desc in META_HELP)
        await app.bot.set_my_commands(commands)
        logger.info(f"Registered {len(commands)} commands for autocomplete")
    except Exception as e:
        logger.warning(f"Failed to register bot commands: {e}")


async def on_startup(app: Application) -> None:
    await register_bot_commands(app)
    state = get_state(app)
    task = asyncio.create_task(
        _preload_critical(app, config.settings.PRELOAD_DELAY_S), name=_TASK_PRELOAD
    )
    state.tasks[_TASK_PRELOAD] = task
    logger.info("Storefront ready with %d lazy pages", len(state.registry))


async def on_shutdown(app: Application) -> None:
    state = get_state(app)
    task = state.tasks.get(_TASK_PRELOAD)
    if isinstance(task, asyncio.Task) and not task.done():
        task.cancel()
    state.save_soon.flush()
    await state.registry.aclose()


async def on_error(update: object, context) -> None:
    logger.warning("Update handling failed: %s", context.error)


def run() -> None:
    setup_logging()
    logger.info("Starting tele_storefront")
    app = build_application()
    # keep the stop_signals None so container shutdown behaves normally
    app.run_polling(stop_signals=None)


if __name__ == "__main__":
    run()
