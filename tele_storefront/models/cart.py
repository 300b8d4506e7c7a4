"""Shopping cart dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CartItem:
    product_id: str
    name: str
    price: float
    quantity: int = 1

    @property
    def subtotal(self) -> float:
        return round(self.price * self.quantity, 2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
        }


@dataclass
class Cart:
    items: dict[str, CartItem] = field(default_factory=dict)

    def add(self, product_id: str, name: str, price: float, quantity: int = 1) -> CartItem:
        if quantity <= 0:
            raise ValueError("quantity must be positive")
        item = self.items.get(product_id)
        if item is None:
            item = CartItem(product_id=product_id, name=name, price=float(price), quantity=0)
            self.items[product_id] = item
        item.quantity += quantity
        # Latest catalog values win.
        item.name = name
        item.price = float(price)
        return item

    def remove(self, product_id: str, quantity: int | None = None) -> bool:
        """Remove `quantity` units (all when None). Returns False if absent."""
        item = self.items.get(product_id)
        if item is None:
            return False
        if quantity is not None and quantity <= 0:
            raise ValueError("quantity must be positive")
        if quantity is None or quantity >= item.quantity:
            del self.items[product_id]
        else:
            item.quantity -= quantity
        return True

    def clear(self) -> None:
        self.items.clear()

    @property
    def count(self) -> int:
        return sum(i.quantity for i in self.items.values())

    @property
    def total(self) -> float:
        return round(sum(i.subtotal for i in self.items.values()), 2)

    def is_empty(self) -> bool:
        return not self.items

    def to_list(self) -> list[dict[str, Any]]:
        return [i.to_dict() for i in self.items.values()]

    @classmethod
    def from_list(cls, rows: list[dict[str, Any]]) -> "Cart":
        cart = cls()
        for row in rows or []:
            try:
                cart.add(
                    str(row["product_id"]),
                    str(row.get("name", "")),
                    float(row.get("price", 0.0)),
                    int(row.get("quantity", 1)),
                )
            except (KeyError, TypeError, ValueError):
                continue
        return cart
