"""Landing page: greeting plus a few featured products."""

from __future__ import annotations

import logging

from .. import config, services, view
from ..catalog import CatalogError
from ..handlers.common import reply_html

logger = logging.getLogger(__name__)

_FEATURED = 5


async def render(update, context) -> None:
    user = update.effective_user
    name = getattr(user, "first_name", None) or "there"
    lines = [f"👋 Hi {view.bold(name)}, welcome to the store!", ""]
    try:
        featured = await services.list_products(_FEATURED)
    except CatalogError as exc:
        logger.warning("Featured products unavailable: %s", exc)
        featured = []
        lines.append("<i>The catalog is unavailable right now.</i>")
    if featured:
        lines.append(view.render_product_list("Featured", featured, config.CURRENCY))
    lines.extend(["", "Browse everything: /products • Your cart: /cart • Help: /help"])
    await reply_html(update, "\n".join(lines))
