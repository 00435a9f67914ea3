# Overview: Register checkout flow; barcode scans, sale finalization and stand-by.

from __future__ import annotations

import time
from typing import Callable, Optional

from .cart import Cart, Notice, ProductSnapshot
from .client import ApiError, PDVClient

# Seconds of inactivity with an empty cart before the register dims
STANDBY_TIMEOUT = 2 * 60


class Checkout:
    """
    One register session: a cart, the API client and the stand-by timer.

    `clock` returns seconds; tests pass explicit `now` values instead.
    """

    def __init__(
        self,
        client: PDVClient,
        notify: Optional[Callable[[Notice], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self._notify = notify or (lambda _notice: None)
        self._clock = clock
        self.cart = Cart(notify=self._notify)
        self.last_activity = clock()
        self._forced_standby = False

    def scan(self, barcode: str) -> bool:
        """Look the barcode up and add one unit. Unknown barcodes raise an error notice."""
        barcode = (barcode or "").strip()
        if not barcode:
            return False
        self.record_activity()

        try:
            data = self.client.find_by_barcode(barcode)
        except ApiError as e:
            self._notify(Notice("error", "Lookup failed", e.message))
            return False

        if data is None:
            self._notify(Notice("error", "Product not found", f"Barcode: {barcode}"))
            return False
        return self.cart.add(ProductSnapshot.from_dict(data))

    def finalize(self, payment_method: str, discount=0, customer_name: Optional[str] = None) -> Optional[dict]:
        """
        Send the cart as one sale.

        Empty cart: nothing happens, returns None. On success the cart is
        cleared and the created sale returned. On failure the cart is kept
        for a retry and an error notice is sent.
        """
        if self.cart.is_empty:
            return None
        self.record_activity()

        try:
            sale = self.client.create_sale(
                self.cart.to_payload(payment_method, discount=discount, customer_name=customer_name)
            )
        except ApiError as e:
            self._notify(Notice("error", "Sale failed", e.message))
            return None

        self.cart.clear()
        self._notify(Notice("sale", "Sale completed", f"Total: {sale['total']:.2f} - {sale['payment_method']}"))
        for warning in sale.get("stock_warnings") or []:
            self._notify(Notice("warning", "Stock not updated", f"{warning['product_id']}: {warning['error']}"))
        return sale

    def record_activity(self, now: Optional[float] = None) -> None:
        """Any operator input; also wakes the register from stand-by."""
        self.last_activity = self._clock() if now is None else now
        self._forced_standby = False

    def enter_standby(self) -> None:
        self._forced_standby = True

    def in_standby(self, now: Optional[float] = None) -> bool:
        if self._forced_standby:
            return True
        if not self.cart.is_empty:
            return False
        now = self._clock() if now is None else now
        return now - self.last_activity >= STANDBY_TIMEOUT
