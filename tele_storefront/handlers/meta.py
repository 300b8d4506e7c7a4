from __future__ import annotations

import html
import logging

from telegram.constants import ParseMode

from .. import view
from ..commands import GROUP_ORDER, PAGES, find_page
from ..loader import LoadStatus
from ..runtime import STARTUP_TIME
from .common import get_state, guard_admin, is_admin, reply_html

logger = logging.getLogger(__name__)

META_HELP = (
    ("help", "/help", "this menu"),
    ("whoami", "/whoami", "show chat and user info"),
    ("retry", "/retry <page>", "retry a page that failed to load"),
)
ADMIN_HELP = (
    ("loaders", "/loaders", "page loader status"),
    ("metrics", "/metrics", "page metrics summary"),
    ("debug", "/debug [page]", "recent errors"),
)


def _render_help(admin: bool = False) -> str:
    by_group: dict[str, list[str]] = {}
    for spec in PAGES:
        if spec.admin and not admin:
            continue
        by_group.setdefault(spec.group, []).append(f"{spec.usage} – {spec.description}")
    for _, usage, description in META_HELP:
        by_group.setdefault("Info", []).append(f"{usage} – {description}")
    if admin:
        for _, usage, description in ADMIN_HELP:
            by_group.setdefault("Admin", []).append(f"{usage} – {description}")

    lines: list[str] = ["Welcome to the store! Commands:\n"]
    for group in GROUP_ORDER:
        entries = by_group.get(group, [])
        if not entries:
            continue
        lines.append(group)
        lines.extend(entries)
        lines.append("")
    return "\n".join(lines).strip()


async def cmd_start(update, context) -> None:
    await update.message.reply_text(_render_help(admin=is_admin(update)))
    # Warm the landing pages.
    get_state(context.application).registry.preload("home", "products")


async def cmd_help(update, context) -> None:
    await cmd_start(update, context)


async def cmd_whoami(update, context) -> None:
    c = update.effective_chat
    u = update.effective_user
    username = f"@{u.username}" if u and u.username else "(no username)"
    msg = f"chat_id: {c.id}\nchat_type: {c.type}\nuser: {username}"
    await update.message.reply_text(msg)


async def cmd_retry(update, context) -> None:
    """Give a page that exhausted its retries another chance."""
    if not context.args:
        await update.message.reply_text("Usage: /retry <page>")
        return
    spec = find_page(context.args[0])
    if spec is None:
        await update.message.reply_text(
            f"❓ Unknown page: {html.escape(context.args[0])}", parse_mode=ParseMode.HTML
        )
        return
    if spec.admin and not is_admin(update):
        await update.message.reply_text("⛔ Not authorized")
        return

    registry = get_state(context.application).registry
    if registry.get(spec.name).status is not LoadStatus.ERROR:
        await update.message.reply_text(
            f"✅ /{spec.name} is fine, open it again to continue."
        )
        return
    entry = registry.reset(spec.name)
    try:
        await entry()
    except Exception as exc:
        logger.warning("Retry of %s failed: %s", spec.name, exc)
        await update.message.reply_text(
            f"❌ /{spec.name} is still unavailable. Please try later."
        )
        return
    await update.message.reply_text(f"✅ /{spec.name} is back. Open it again to continue.")


async def cmd_loaders(update, context) -> None:
    if not await guard_admin(update, context):
        return
    state = get_state(context.application)
    header = f"<i>Up since {html.escape(STARTUP_TIME.strftime('%Y-%m-%d %H:%M:%S'))}</i>"
    await reply_html(update, header + "\n" + view.render_load_snapshot(state.registry.snapshot()))


async def cmd_metrics(update, context) -> None:
    if not await guard_admin(update, context):
        return
    state = get_state(context.application)
    await reply_html(update, view.render_page_metrics(state.page_metrics))


async def cmd_debug(update, context) -> None:
    if not await guard_admin(update, context):
        return
    state = get_state(context.application)
    page = None
    if context.args:
        spec = find_page(context.args[0])
        page = spec.name if spec else context.args[0].strip().lstrip("/")
    await reply_html(update, view.render_debug(state.get_debug(page)))
