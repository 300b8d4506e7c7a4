"""Referral (affiliate) codes applied to the next checkout."""

from __future__ import annotations

import logging
import re

from .. import services
from ..catalog import CatalogError
from ..handlers.common import chat_id_of, get_state

logger = logging.getLogger(__name__)

MIN_CODE_LENGTH = 3
_UNSAFE = re.compile(r"[^\w\s-]")


def sanitize_affiliate_code(raw: str) -> str:
    """Strip everything but word characters, spaces and dashes, then uppercase."""
    return _UNSAFE.sub("", raw or "").strip().upper()


async def render(update, context) -> None:
    state = get_state(context.application)
    chat_id = chat_id_of(update)
    raw = " ".join(context.args or []).strip()

    if not raw:
        current = state.affiliate_code_for(chat_id)
        if current:
            await update.message.reply_text(
                f"🤝 Referral code {current} will be added to your next /checkout.\n"
                "Remove it with /affiliate clear"
            )
        else:
            await update.message.reply_text(
                "🤝 No referral code set. Add one with /affiliate <code>"
            )
        return

    if raw.lower() == "clear":
        if state.clear_affiliate_code(chat_id):
            await update.message.reply_text("🧹 Referral code removed.")
        else:
            await update.message.reply_text("No referral code to remove.")
        return

    code = sanitize_affiliate_code(raw)
    if len(code) < MIN_CODE_LENGTH:
        await update.message.reply_text(
            f"❌ Referral codes have at least {MIN_CODE_LENGTH} letters or digits."
        )
        return

    try:
        affiliate = await services.get_affiliate(code)
    except CatalogError as exc:
        logger.warning("Affiliate lookup for %s failed: %s", code, exc)
        await update.message.reply_text(
            "⚠️ Couldn't check that code right now. Try again in a moment."
        )
        return
    if affiliate is None:
        await update.message.reply_text(f"❓ Unknown or inactive referral code: {code}")
        return

    state.set_affiliate_code(chat_id, code)
    referrer = affiliate.get("full_name")
    suffix = f" (referred by {referrer})" if referrer else ""
    await update.message.reply_text(
        f"✅ Referral code {code} applied{suffix}. It will be added to your next /checkout."
    )
