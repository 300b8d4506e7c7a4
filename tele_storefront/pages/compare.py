"""Side-by-side product comparison."""

from __future__ import annotations

import asyncio
import html

from .. import config, services, view
from ..handlers.common import chat_id_of, get_state, reply_html
from ..models.store_state import MAX_COMPARE_ITEMS


async def render(update, context) -> None:
    state = get_state(context.application)
    chat_id = chat_id_of(update)
    args = [a.strip() for a in (context.args or []) if a.strip()]

    if args and args[0].lower() == "clear":
        state.clear_comparison(chat_id)
        await update.message.reply_text("🧹 Comparison list cleared.")
        return

    for product_id in args[-MAX_COMPARE_ITEMS:]:
        state.add_to_comparison(chat_id, product_id)

    wanted = state.comparison_for(chat_id)
    found = await asyncio.gather(*(services.get_product(pid) for pid in wanted))
    products = [p for p in found if p]
    missing = [pid for pid, p in zip(wanted, found) if not p]
    state.remove_from_comparison(chat_id, *missing)

    if len(products) < 2:
        names = ", ".join(str(p.get("id")) for p in products) or "nothing yet"
        lines = [f"⚖️ Comparing: {names}"]
        if missing:
            lines.append(f"❓ Unknown product id(s): {', '.join(missing)}")
        lines.append(
            f"Add at least two products (up to {MAX_COMPARE_ITEMS}): /compare <id> <id>"
        )
        await update.message.reply_text("\n".join(lines))
        return

    text = view.render_comparison(products, config.CURRENCY)
    if missing:
        text += f"\n<i>Dropped unknown id(s): {html.escape(', '.join(missing))}</i>"
    await reply_html(update, text)
