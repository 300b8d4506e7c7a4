"""Account overview: recent orders, cart and wishlist counts."""

from __future__ import annotations

from .. import config, services, view
from ..handlers.common import chat_id_of, get_state, reply_html


async def render(update, context) -> None:
    chat_id = chat_id_of(update)
    state = get_state(context.application)
    user = update.effective_user
    username = f"@{user.username}" if user and user.username else "(no username)"
    orders = await services.list_orders(f"tg:{chat_id}", 5)
    cart = state.cart_for(chat_id)
    lines = [
        view.bold("Your account"),
        f"User: {view.code(username)}",
        f"Cart: {cart.count} item(s) • Saved: {len(state.wishlist_for(chat_id))}",
        "",
        view.render_orders("Recent orders:", orders, config.CURRENCY),
        "",
        view.link(config.redirect_url("/account"), "Manage on website"),
    ]
    await reply_html(update, "\n".join(lines))
