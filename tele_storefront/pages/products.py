"""Catalog listing and search."""

from __future__ import annotations

from .. import config, services, view
from ..handlers.common import reply_html

_PAGE_SIZE = 20


async def render(update, context) -> None:
    query = " ".join(context.args or []).strip()
    if query:
        products = await services.search_products(query, _PAGE_SIZE)
        title = f"Results for '{query}':"
    else:
        products = await services.list_products(_PAGE_SIZE)
        title = "Products:"
    await reply_html(update, view.render_product_list(title, products, config.CURRENCY))
