"""Saved products."""

from __future__ import annotations

import asyncio

from .. import config, services, view
from ..handlers.common import chat_id_of, get_state, reply_html, reply_usage


async def render(update, context) -> None:
    wished = sorted(get_state(context.application).wishlist_for(chat_id_of(update)))
    if not wished:
        await update.message.reply_text("💭 Nothing saved yet. Use /wish <id> on a product.")
        return
    found = await asyncio.gather(*(services.get_product(pid) for pid in wished))
    products = [p for p in found if p]
    await reply_html(update, view.render_product_list("Saved products:", products, config.CURRENCY))


async def toggle(update, context) -> None:
    if not context.args:
        await reply_usage(update, "/wish <id>")
        return
    product_id = context.args[0].strip()
    state = get_state(context.application)
    if state.toggle_wishlist(chat_id_of(update), product_id):
        await update.message.reply_text(f"❤️ Saved {product_id}. See /wishlist")
    else:
        await update.message.reply_text(f"💔 Removed {product_id} from your wishlist.")
