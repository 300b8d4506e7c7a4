"""Checkout: turns the cart into an order on the backend."""

from __future__ import annotations

import logging

from .. import config, services, view
from ..handlers.common import chat_id_of, get_state, reply_html

logger = logging.getLogger(__name__)


async def render(update, context) -> None:
    state = get_state(context.application)
    chat_id = chat_id_of(update)
    cart = state.cart_for(chat_id)
    if cart.is_empty():
        await update.message.reply_text("🛒 Your cart is empty. Browse with /products")
        return

    user = update.effective_user
    order = {
        "customer_ref": f"tg:{chat_id}",
        "customer_name": " ".join(
            p for p in (getattr(user, "first_name", None), getattr(user, "last_name", None)) if p
        )
        or getattr(user, "username", None)
        or str(chat_id),
        "items": cart.to_list(),
        "total_amount": cart.total,
        "currency": config.CURRENCY,
        "status": "pending",
    }
    note = " ".join(context.args or []).strip()
    if note:
        order["delivery_note"] = note[:500]
    affiliate_code = state.affiliate_code_for(chat_id)
    if affiliate_code:
        order["affiliate_code"] = affiliate_code

    stored = await services.place_order(order)
    logger.info("Order %s placed by chat %s (%s)", stored.get("id"), chat_id, cart.total)
    state.clear_cart(chat_id)
    await reply_html(update, view.render_order_confirmation(stored, config.CURRENCY))
