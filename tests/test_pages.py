"""Tests for the page modules behind the lazy registry."""

import pytest

from tele_storefront import config, services
from tele_storefront.catalog import CatalogError
from tele_storefront.handlers.common import get_state
from tele_storefront.pages import (
    about,
    admin,
    affiliate,
    cart,
    checkout,
    compare,
    home,
    policies,
    product,
)

from conftest import DummyContext, DummyUpdate

STAND = {"id": "p1", "name": "Laptop Stand", "price": 120.0, "stock_quantity": 3}


@pytest.fixture(autouse=True)
def currency(monkeypatch) -> None:
    monkeypatch.setattr(config, "CURRENCY", "GHS")


def fake_catalog(monkeypatch, products: dict) -> None:
    async def get_product(product_id: str):
        return products.get(product_id)

    monkeypatch.setattr(services, "get_product", get_product)


@pytest.mark.asyncio
async def test_add_to_cart_and_render(monkeypatch) -> None:
    fake_catalog(monkeypatch, {"p1": STAND})
    context = DummyContext(["p1", "2"])
    update = DummyUpdate(5)

    await cart.add(update, context)
    await cart.render(update, context)

    state = get_state(context.application)
    assert state.cart_for(5).count == 2
    assert "Added <b>Laptop Stand</b> × 2" in update.message.replies[0]
    assert "GHS 240.00" in update.message.replies[1]


@pytest.mark.asyncio
async def test_add_rejects_bad_quantity_and_unknown_product(monkeypatch) -> None:
    fake_catalog(monkeypatch, {"p1": {**STAND, "stock_quantity": 0}})
    update = DummyUpdate(5)

    await cart.add(update, DummyContext(["p1", "zero"]))
    await cart.add(update, DummyContext(["p9"]))
    await cart.add(update, DummyContext(["p1"]))

    assert "positive whole number" in update.message.replies[0]
    assert "No product with id p9" in update.message.replies[1]
    assert "out of stock" in update.message.replies[2]


@pytest.mark.asyncio
async def test_remove_and_clear() -> None:
    context = DummyContext(["p1", "1"])
    state = get_state(context.application)
    state.add_to_cart(5, "p1", "Stand", 10.0, 2)
    update = DummyUpdate(5)

    await cart.remove(update, context)
    assert state.cart_for(5).count == 1

    context.args = ["p2"]
    await cart.remove(update, context)
    assert "not in your cart" in update.message.replies[-1]

    await cart.clear(update, context)
    assert state.cart_for(5).is_empty()


@pytest.mark.asyncio
async def test_checkout_places_order_and_clears_cart(monkeypatch) -> None:
    placed: list[dict] = []

    async def place_order(order):
        placed.append(order)
        return {**order, "id": "o-17"}

    monkeypatch.setattr(services, "place_order", place_order)
    context = DummyContext(["Leave", "at", "gate"])
    state = get_state(context.application)
    state.add_to_cart(5, "p1", "Stand", 10.0, 2)
    update = DummyUpdate(5)
    update.effective_user.first_name = "Ama"

    await checkout.render(update, context)

    order = placed[0]
    assert order["customer_ref"] == "tg:5"
    assert order["customer_name"] == "Ama"
    assert order["total_amount"] == 20.0
    assert order["delivery_note"] == "Leave at gate"
    assert state.cart_for(5).is_empty()
    assert "o-17" in update.message.replies[0]


@pytest.mark.asyncio
async def test_checkout_with_empty_cart(monkeypatch) -> None:
    async def place_order(order):
        raise AssertionError("should not be called")

    monkeypatch.setattr(services, "place_order", place_order)
    update = DummyUpdate(5)

    await checkout.render(update, DummyContext())

    assert "cart is empty" in update.message.replies[0]


@pytest.mark.asyncio
async def test_home_survives_catalog_outage(monkeypatch) -> None:
    async def list_products(limit: int = 20):
        raise CatalogError("backend not configured")

    monkeypatch.setattr(services, "list_products", list_products)
    update = DummyUpdate(5)

    await home.render(update, DummyContext())

    assert "catalog is unavailable" in update.message.replies[0]
    assert "/products" in update.message.replies[0]


@pytest.mark.asyncio
async def test_product_page(monkeypatch) -> None:
    fake_catalog(monkeypatch, {"p1": STAND})
    update = DummyUpdate(5)

    await product.render(update, DummyContext(["p1"]))
    await product.render(update, DummyContext(["p2"]))

    assert "Laptop Stand" in update.message.replies[0]
    assert "/product/p1" in update.message.replies[0]
    assert "No product with id p2" in update.message.replies[1]


def test_search_faq_requires_every_word() -> None:
    assert about.search_faq("") == list(about.FAQ)
    matches = about.search_faq("payment delivery")
    assert matches
    assert all("payment" in (q + a).lower() for q, a in matches)
    assert about.search_faq("teleport") == []


def test_render_policy_links_to_site() -> None:
    text = policies.render_policy("returns")
    assert "Refund Policy" in text
    assert "/returns" in text
    assert set(policies.POLICIES) == {
        "warranty",
        "payment",
        "delivery",
        "returns",
        "privacy",
        "terms",
    }


@pytest.mark.asyncio
async def test_admin_orders_clamps_limit(monkeypatch) -> None:
    seen: list = []

    async def list_orders(customer_ref=None, limit=10):
        seen.append((customer_ref, limit))
        return []

    monkeypatch.setattr(services, "list_orders", list_orders)
    update = DummyUpdate(1)

    await admin.orders(update, DummyContext(["500"]))
    await admin.orders(update, DummyContext())

    assert seen == [(None, 50), (None, 10)]
    assert "No orders yet" in update.message.replies[0]


@pytest.mark.asyncio
async def test_checkout_attaches_affiliate_code(monkeypatch) -> None:
    placed: list[dict] = []

    async def place_order(order):
        placed.append(order)
        return {**order, "id": "o-18"}

    monkeypatch.setattr(services, "place_order", place_order)
    context = DummyContext()
    state = get_state(context.application)
    state.add_to_cart(5, "p1", "Stand", 10.0)
    state.set_affiliate_code(5, "KOFI-01")
    update = DummyUpdate(5)

    await checkout.render(update, context)

    assert placed[0]["affiliate_code"] == "KOFI-01"
    assert "delivery_note" not in placed[0]
    assert "Referral: <code>KOFI-01</code>" in update.message.replies[0]


@pytest.mark.asyncio
async def test_checkout_without_affiliate_code(monkeypatch) -> None:
    placed: list[dict] = []

    async def place_order(order):
        placed.append(order)
        return {**order, "id": "o-19"}

    monkeypatch.setattr(services, "place_order", place_order)
    context = DummyContext()
    get_state(context.application).add_to_cart(5, "p1", "Stand", 10.0)

    await checkout.render(DummyUpdate(5), context)

    assert "affiliate_code" not in placed[0]


def test_sanitize_affiliate_code() -> None:
    assert affiliate.sanitize_affiliate_code("  kofi-01! ") == "KOFI-01"
    assert affiliate.sanitize_affiliate_code("<b>ab</b>") == "BABB"
    assert affiliate.sanitize_affiliate_code("") == ""


@pytest.mark.asyncio
async def test_affiliate_code_is_validated_and_saved(monkeypatch) -> None:
    lookups: list[str] = []

    async def get_affiliate(code: str):
        lookups.append(code)
        if code == "KOFI-01":
            return {"id": "a1", "full_name": "Kofi Mensah", "affiliate_code": code}
        return None

    monkeypatch.setattr(services, "get_affiliate", get_affiliate)
    context = DummyContext(["kofi-01"])
    state = get_state(context.application)
    update = DummyUpdate(5)

    await affiliate.render(update, context)
    context.args = ["nope99"]
    await affiliate.render(update, context)
    context.args = ["x!"]
    await affiliate.render(update, context)

    assert lookups == ["KOFI-01", "NOPE99"]
    assert state.affiliate_code_for(5) == "KOFI-01"
    assert "referred by Kofi Mensah" in update.message.replies[0]
    assert "Unknown or inactive referral code: NOPE99" in update.message.replies[1]
    assert "at least 3" in update.message.replies[2]


@pytest.mark.asyncio
async def test_affiliate_lookup_outage_keeps_previous_code(monkeypatch) -> None:
    async def get_affiliate(code: str):
        raise CatalogError("backend returned HTTP 503")

    monkeypatch.setattr(services, "get_affiliate", get_affiliate)
    context = DummyContext(["ama-22"])
    state = get_state(context.application)
    state.set_affiliate_code(5, "KOFI-01")
    update = DummyUpdate(5)

    await affiliate.render(update, context)

    assert state.affiliate_code_for(5) == "KOFI-01"
    assert "Couldn't check that code" in update.message.replies[0]


@pytest.mark.asyncio
async def test_affiliate_show_and_clear() -> None:
    context = DummyContext()
    state = get_state(context.application)
    update = DummyUpdate(5)

    await affiliate.render(update, context)
    state.set_affiliate_code(5, "KOFI-01")
    await affiliate.render(update, context)
    context.args = ["clear"]
    await affiliate.render(update, context)
    await affiliate.render(update, context)

    assert "No referral code set" in update.message.replies[0]
    assert "KOFI-01" in update.message.replies[1]
    assert "removed" in update.message.replies[2]
    assert "No referral code to remove" in update.message.replies[3]
    assert state.affiliate_code_for(5) is None


HUB = {
    "id": "p2",
    "name": "USB-C Hub",
    "price": 85.5,
    "category": "Accessories",
    "stock_quantity": 0,
    "specifications": "Ports: 7, Power: 100W",
}


@pytest.mark.asyncio
async def test_compare_two_products(monkeypatch) -> None:
    fake_catalog(monkeypatch, {"p1": STAND, "p2": HUB})
    context = DummyContext(["p1", "p2"])
    update = DummyUpdate(5)

    await compare.render(update, context)

    text = update.message.replies[0]
    assert "Comparing 2 products" in text
    assert "1. GHS 120.00" in text
    assert "2. GHS 85.50" in text
    assert "2. out of stock" in text
    assert "<b>Ports</b>" in text
    assert "Best price: USB-C Hub" in text
    assert get_state(context.application).comparison_for(5) == ["p1", "p2"]


@pytest.mark.asyncio
async def test_compare_needs_two_known_products(monkeypatch) -> None:
    fake_catalog(monkeypatch, {"p1": STAND})
    context = DummyContext(["p1", "p9"])
    update = DummyUpdate(5)

    await compare.render(update, context)

    reply = update.message.replies[0]
    assert "Comparing: p1" in reply
    assert "Unknown product id(s): p9" in reply
    assert "/compare <id> <id>" in reply
    assert get_state(context.application).comparison_for(5) == ["p1"]


@pytest.mark.asyncio
async def test_compare_accumulates_and_clears(monkeypatch) -> None:
    fake_catalog(monkeypatch, {"p1": STAND, "p2": HUB})
    context = DummyContext(["p1"])
    state = get_state(context.application)
    update = DummyUpdate(5)

    await compare.render(update, context)
    context.args = ["p2"]
    await compare.render(update, context)
    context.args = ["clear"]
    await compare.render(update, context)

    assert "Comparing: p1" in update.message.replies[0]
    assert "Comparing 2 products" in update.message.replies[1]
    assert "cleared" in update.message.replies[2]
    assert state.comparison_for(5) == []
