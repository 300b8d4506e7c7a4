"""Async facade over blocking backend calls."""

from __future__ import annotations

import asyncio

from . import catalog
from .catalog import Affiliate, Order, Product


async def list_products(limit: int = 20) -> list[Product]:
    return await asyncio.to_thread(catalog.fetch_products, limit)


async def get_product(product_id: str) -> Product | None:
    return await asyncio.to_thread(catalog.fetch_product, product_id)


async def search_products(query: str, limit: int = 10) -> list[Product]:
    return await asyncio.to_thread(catalog.search_products, query, limit)


async def place_order(order: Order) -> Order:
    return await asyncio.to_thread(catalog.create_order, order)


async def list_orders(customer_ref: str | None = None, limit: int = 10) -> list[Order]:
    return await asyncio.to_thread(catalog.fetch_orders, customer_ref, limit)


async def get_affiliate(code: str) -> Affiliate | None:
    return await asyncio.to_thread(catalog.fetch_affiliate, code)
