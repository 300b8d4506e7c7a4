"""Page registry (single source of truth for help, wiring and lazy loading)."""

from __future__ import annotations

from . import config
from .config import Settings
from .loader import lazy_import
from .models.page_spec import Group, PageSpec
from .registry import LazyRegistry

_PAGES_PKG = "tele_storefront.pages"


def _page(name: str, group: Group, usage: str, description: str, module: str, **kw):
    return PageSpec(name, group, usage, description, f"{_PAGES_PKG}.{module}", **kw)


_SHOP_PAGES = (
    _page("home", "Shop", "/home", "featured products", "home", prefetch=("products",)),
    _page(
        "products",
        "Shop",
        "/products [search]",
        "browse or search the catalog",
        "products",
        aliases=("shop", "search"),
        prefetch=("product",),
    ),
    _page(
        "product",
        "Shop",
        "/product <id>",
        "product details",
        "product",
        prefetch=("add", "cart"),
    ),
    _page(
        "compare",
        "Shop",
        "/compare [id ...|clear]",
        "compare up to 4 products side by side",
        "compare",
        prefetch=("product",),
    ),
)

_CART_PAGES = (
    _page("cart", "Cart", "/cart", "show your cart", "cart", prefetch=("checkout",)),
    _page("add", "Cart", "/add <id> [qty]", "add to cart", "cart", attr="add"),
    _page(
        "remove", "Cart", "/remove <id> [qty]", "remove from cart", "cart", attr="remove"
    ),
    _page("clearcart", "Cart", "/clearcart", "empty your cart", "cart", attr="clear"),
    _page(
        "checkout",
        "Cart",
        "/checkout [delivery note]",
        "place an order for your cart",
        "checkout",
    ),
    _page(
        "affiliate",
        "Cart",
        "/affiliate [code|clear]",
        "apply a referral code to your next order",
        "affiliate",
        aliases=("ref",),
        prefetch=("checkout",),
    ),
)

_ACCOUNT_PAGES = (
    _page("account", "Account", "/account", "your orders and saved items", "account"),
    _page("wishlist", "Account", "/wishlist", "show saved products", "wishlist"),
    _page(
        "wish", "Account", "/wish <id>", "save or unsave a product", "wishlist", attr="toggle"
    ),
)

_INFO_PAGES = (
    _page("about", "Info", "/about", "about the store", "about"),
    _page("support", "Info", "/support", "contact support", "about", attr="support"),
    _page("faq", "Info", "/faq [question]", "common questions", "about", attr="faq"),
    _page("warranty", "Info", "/warranty", "warranty", "policies", attr="warranty"),
    _page("payment", "Info", "/payment", "payment policy", "policies", attr="payment"),
    _page("delivery", "Info", "/delivery", "delivery policy", "policies", attr="delivery"),
    _page("returns", "Info", "/returns", "returns and refunds", "policies", attr="returns"),
    _page("privacy", "Info", "/privacy", "privacy policy", "policies", attr="privacy"),
    _page("terms", "Info", "/terms", "terms of use", "policies", attr="terms"),
)

_ADMIN_PAGES = (
    _page(
        "admin", "Admin", "/admin", "store dashboard", "admin", admin=True, prefetch=("orders",)
    ),
    _page("orders", "Admin", "/orders [n]", "latest orders", "admin", attr="orders", admin=True),
)

PAGES: tuple[PageSpec, ...] = (
    _SHOP_PAGES + _CART_PAGES + _ACCOUNT_PAGES + _INFO_PAGES + _ADMIN_PAGES
)

GROUP_ORDER: tuple[Group, ...] = ("Shop", "Cart", "Account", "Info", "Admin")

# Warmed shortly after startup.
CRITICAL_PAGES: tuple[str, ...] = ("home", "products")

_BY_NAME: dict[str, PageSpec] = {}
for _spec in PAGES:
    for _trigger in (_spec.name, *_spec.aliases):
        _BY_NAME[_trigger] = _spec


def find_page(name: str) -> PageSpec | None:
    """Look up a page by name or alias (leading slash allowed)."""
    return _BY_NAME.get((name or "").strip().lstrip("/").lower())


def build_registry(
    pages: tuple[PageSpec, ...] = PAGES, settings: Settings | None = None
) -> LazyRegistry:
    """Register one deferred import per page."""
    s = settings or config.settings
    registry = LazyRegistry(
        max_retries=s.LOADER_MAX_RETRIES,
        base_delay_s=s.LOADER_BASE_DELAY_S,
        attempt_timeout_s=s.LOADER_ATTEMPT_TIMEOUT_S,
    )
    for spec in pages:
        registry.register(spec.name, lazy_import(spec.module, spec.attr))
    return registry
