"""Cart page and cart actions."""

from __future__ import annotations

from .. import config, services, view
from ..handlers.common import chat_id_of, get_state, reply_html, reply_usage


def _parse_qty(args: list[str]) -> int | None:
    if len(args) < 2:
        return None
    raw = args[1].strip()
    if not raw.isdigit() or int(raw) <= 0:
        raise ValueError("quantity must be a positive whole number")
    return int(raw)


async def render(update, context) -> None:
    state = get_state(context.application)
    cart = state.cart_for(chat_id_of(update))
    await reply_html(update, view.render_cart(cart, config.CURRENCY))


async def add(update, context) -> None:
    args = context.args or []
    if not args:
        await reply_usage(update, "/add <id> [qty]")
        return
    try:
        quantity = _parse_qty(args) or 1
    except ValueError as exc:
        await update.message.reply_text(f"❌ {exc}")
        return
    product = await services.get_product(args[0].strip())
    if product is None:
        await update.message.reply_text(f"❓ No product with id {args[0].strip()}")
        return
    stock = product.get("stock_quantity")
    if stock is not None and int(stock) <= 0:
        await update.message.reply_text("😕 Sorry, that product is out of stock.")
        return

    state = get_state(context.application)
    cart = state.add_to_cart(
        chat_id_of(update),
        str(product["id"]),
        str(product.get("name") or "Unnamed"),
        float(product.get("price") or 0.0),
        quantity,
    )
    await reply_html(
        update,
        f"✅ Added {view.bold(product.get('name') or 'item')} × {quantity}. "
        f"Cart: {cart.count} item(s), {view.format_price(cart.total, config.CURRENCY)}\n"
        "View cart: /cart",
    )


async def remove(update, context) -> None:
    args = context.args or []
    if not args:
        await reply_usage(update, "/remove <id> [qty]")
        return
    try:
        quantity = _parse_qty(args)
    except ValueError as exc:
        await update.message.reply_text(f"❌ {exc}")
        return
    state = get_state(context.application)
    if not state.remove_from_cart(chat_id_of(update), args[0].strip(), quantity):
        await update.message.reply_text("That product is not in your cart.")
        return
    await render(update, context)


async def clear(update, context) -> None:
    get_state(context.application).clear_cart(chat_id_of(update))
    await update.message.reply_text("🧹 Your cart is empty now.")
