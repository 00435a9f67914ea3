# Overview: Register-side cart; merges scans into line items and keeps totals in cents.

"""
Cart accumulator for the register.

Lines are keyed by product id. Every mutation that is refused (stock limits)
leaves the cart untouched and sends a warning Notice to the injected
`notify` callback, which the register UI shows as a toast.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from ..validation import from_cents, to_cents

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Notice:
    kind: str  # success | info | warning | error | sale
    title: str
    message: str


@dataclass(frozen=True)
class ProductSnapshot:
    """The product fields the register needs, captured when it was looked up."""
    id: str
    name: str
    price_cents: int
    stock: int
    barcode: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "ProductSnapshot":
        if data.get("price_cents") is not None:
            price_cents = int(data["price_cents"])
        else:
            price_cents = to_cents(data.get("price", 0), "price")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            price_cents=price_cents,
            stock=int(data.get("stock", 0)),
            barcode=data.get("barcode") or "",
        )


@dataclass
class CartItem:
    product: ProductSnapshot
    quantity: int
    unit_price_cents: int

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def total_cents(self) -> int:
        return self.quantity * self.unit_price_cents

    @property
    def unit_price(self) -> Decimal:
        return (Decimal(self.unit_price_cents) / 100).quantize(CENT)

    @property
    def total(self) -> Decimal:
        return (Decimal(self.total_cents) / 100).quantize(CENT)


def _ignore(_notice: Notice) -> None:
    pass


class Cart:
    def __init__(self, notify: Optional[Callable[[Notice], None]] = None):
        self._items: dict[str, CartItem] = {}
        self._notify = notify or _ignore

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> list[CartItem]:
        return list(self._items.values())

    @property
    def is_empty(self) -> bool:
        return not self._items

    def get(self, product_id: str) -> CartItem | None:
        return self._items.get(product_id)

    def _insufficient(self, product: ProductSnapshot) -> bool:
        self._notify(Notice(
            "warning",
            "Insufficient stock",
            f"Only {product.stock} units of {product.name} available",
        ))
        return False

    def add(self, product: ProductSnapshot, quantity: int = 1) -> bool:
        """
        Add `quantity` of `product`, merging into an existing line.

        Refused (warning, returns False) when the resulting line quantity
        would exceed product.stock.
        """
        if quantity < 1:
            return False
        existing = self._items.get(product.id)
        new_quantity = quantity + (existing.quantity if existing else 0)
        if new_quantity > product.stock:
            return self._insufficient(product)

        if existing:
            existing.quantity = new_quantity
            existing.product = product
        else:
            self._items[product.id] = CartItem(
                product=product,
                quantity=quantity,
                unit_price_cents=product.price_cents,
            )

        self._notify(Notice("success", "Product added", f"{quantity}x {product.name}"))
        return True

    def set_quantity(self, product_id: str, new_quantity: int) -> bool:
        """Replace a line's quantity. <= 0 removes it; above stock is refused."""
        if new_quantity <= 0:
            self.remove(product_id)
            return True

        item = self._items.get(product_id)
        if item is None:
            return False
        if new_quantity > item.product.stock:
            return self._insufficient(item.product)

        item.quantity = new_quantity
        return True

    def remove(self, product_id: str) -> None:
        self._items.pop(product_id, None)

    def clear(self) -> None:
        self._items.clear()

    def total_cents(self) -> int:
        return sum(item.total_cents for item in self._items.values())

    def total(self) -> Decimal:
        return (Decimal(self.total_cents()) / 100).quantize(CENT)

    def to_payload(self, payment_method: str, discount=0, customer_name: str | None = None) -> dict:
        """Request body for POST /api/sales."""
        payload = {
            "items": [
                {
                    "productId": item.product_id,
                    "productName": item.product.name,
                    "quantity": item.quantity,
                    "unitPrice": from_cents(item.unit_price_cents),
                }
                for item in self._items.values()
            ],
            "paymentMethod": payment_method,
            "discount": discount,
        }
        if customer_name:
            payload["customerName"] = customer_name
        return payload
