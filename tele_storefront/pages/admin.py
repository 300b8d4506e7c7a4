"""Admin dashboard and order list. Access is checked before loading."""

from __future__ import annotations

from .. import config, services, view
from ..handlers.common import get_state, reply_html
from ..loader import LoadStatus

_DEFAULT_ORDERS = 10
_MAX_ORDERS = 50


async def render(update, context) -> None:
    state = get_state(context.application)
    snapshot = state.registry.snapshot()
    loaded = sum(1 for a in snapshot.values() if a.status is LoadStatus.SUCCESS)
    failed = [name for name, a in snapshot.items() if a.status is LoadStatus.ERROR]
    open_carts = [c for c in state.carts.values() if not c.is_empty()]
    cart_value = sum(c.total for c in open_carts)
    lines = [
        view.bold(f"{config.STORE_NAME} dashboard"),
        f"Open carts: {len(open_carts)} ({view.format_price(cart_value, config.CURRENCY)})",
        f"Wishlists: {sum(1 for w in state.wishlists.values() if w)}",
        f"Pages loaded: {loaded}/{len(snapshot)}",
    ]
    if failed:
        lines.append("Failed pages: " + ", ".join(view.code(n) for n in sorted(failed)))
    lines.extend(["", "Orders: /orders • Loaders: /loaders • Metrics: /metrics"])
    await reply_html(update, "\n".join(lines))


async def orders(update, context) -> None:
    limit = _DEFAULT_ORDERS
    if context.args and context.args[0].isdigit():
        limit = max(1, min(int(context.args[0]), _MAX_ORDERS))
    rows = await services.list_orders(None, limit)
    await reply_html(update, view.render_orders(f"Latest {limit} orders:", rows, config.CURRENCY))
