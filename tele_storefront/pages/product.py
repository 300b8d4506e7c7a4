"""Product detail page."""

from __future__ import annotations

from .. import config, services, view
from ..handlers.common import reply_html, reply_usage


async def render(update, context) -> None:
    if not context.args:
        await reply_usage(update, "/product <id>")
        return
    product_id = context.args[0].strip()
    product = await services.get_product(product_id)
    if product is None:
        await update.message.reply_text(f"❓ No product with id {product_id}")
        return
    url = config.redirect_url(f"/product/{product_id}")
    await reply_html(update, view.render_product(product, config.CURRENCY, url=url))
