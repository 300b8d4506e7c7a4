"""Product catalog and orders over the hosted backend's REST interface."""

from __future__ import annotations

import logging
from typing import Any, TypedDict

import requests

from . import config
from .perf import memoize

__all__ = [
    "CatalogError",
    "Product",
    "Order",
    "Affiliate",
    "fetch_products",
    "fetch_product",
    "search_products",
    "create_order",
    "fetch_orders",
    "fetch_affiliate",
]

logger = logging.getLogger(__name__)

_CLIENT_INFO = "tele-storefront"


class CatalogError(RuntimeError):
    """Backend request failed or the backend is not configured."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class Product(TypedDict, total=False):
    id: str
    name: str
    description: str
    price: float
    original_price: float
    category: str
    stock_quantity: int
    image_url: str
    view_count: int


class Order(TypedDict, total=False):
    id: str
    customer_ref: str
    customer_name: str
    items: list[dict[str, Any]]
    total_amount: float
    currency: str
    status: str
    created_at: str
    affiliate_code: str


class Affiliate(TypedDict, total=False):
    id: str
    full_name: str
    affiliate_code: str
    is_active: bool


def _base_url() -> str:
    s = config.settings
    if not s.BACKEND_URL or not s.BACKEND_ANON_KEY:
        raise CatalogError("backend not configured")
    return f"{s.BACKEND_URL}/rest/v1"


def _headers(extra: dict[str, str] | None = None) -> dict[str, str]:
    key = config.settings.BACKEND_ANON_KEY or ""
    headers = {
        "apikey": key,
        "Authorization": f"Bearer {key}",
        "Accept": "application/json",
        "X-Client-Info": _CLIENT_INFO,
    }
    if extra:
        headers.update(extra)
    return headers


def _get(table: str, params: dict[str, str]) -> list[dict[str, Any]]:
    url = f"{_base_url()}/{table}"
    resp = requests.get(
        url,
        params=params,
        headers=_headers(),
        timeout=config.settings.BACKEND_TIMEOUT_S,
    )
    if not resp.ok:
        logger.warning("GET %s failed: %s %s", table, resp.status_code, resp.text[:200])
        raise CatalogError(f"{table} request failed: {resp.status_code}", resp.status_code)
    data = resp.json()
    if not isinstance(data, list):
        raise CatalogError(f"unexpected {table} payload")
    return data


@memoize(maxsize=32, ttl_s=config.settings.CATALOG_TTL_S)
def fetch_products(limit: int = 20) -> list[Product]:
    """Return the newest products, cached for CATALOG_TTL_S."""
    return _get(
        "products",
        {"select": "*", "order": "created_at.desc", "limit": str(limit)},
    )


def fetch_product(product_id: str) -> Product | None:
    """Return one product, or None when the id does not exist."""
    rows = _get("products", {"select": "*", "id": f"eq.{product_id}", "limit": "1"})
    return rows[0] if rows else None


def search_products(query: str, limit: int = 10) -> list[Product]:
    q = query.strip().replace("*", "")
    if not q:
        return []
    return _get(
        "products",
        {
            "select": "*",
            "name": f"ilike.*{q}*",
            "order": "name.asc",
            "limit": str(limit),
        },
    )


def create_order(order: Order) -> Order:
    """Insert an order and return the stored row."""
    url = f"{_base_url()}/orders"
    resp = requests.post(
        url,
        json=order,
        headers=_headers({"Prefer": "return=representation"}),
        timeout=config.settings.BACKEND_TIMEOUT_S,
    )
    if not resp.ok:
        logger.warning("POST orders failed: %s %s", resp.status_code, resp.text[:200])
        raise CatalogError(f"order request failed: {resp.status_code}", resp.status_code)
    data = resp.json()
    if isinstance(data, list):
        if not data:
            raise CatalogError("order was not stored")
        return data[0]
    return data


def fetch_orders(customer_ref: str | None = None, limit: int = 10) -> list[Order]:
    params = {"select": "*", "order": "created_at.desc", "limit": str(limit)}
    if customer_ref:
        params["customer_ref"] = f"eq.{customer_ref}"
    return _get("orders", params)


def fetch_affiliate(code: str) -> Affiliate | None:
    """Return the active affiliate owning `code`, or None."""
    rows = _get(
        "affiliates",
        {
            "select": "id,full_name,affiliate_code,is_active",
            "affiliate_code": f"eq.{code}",
            "is_active": "eq.true",
            "limit": "1",
        },
    )
    return rows[0] if rows else None
