"""
Sales Service - sale finalization and listing

A sale is written in two phases:

1. The Sale row and all SaleItem rows go in one transaction. Any failure
   rolls back everything and raises SaleError; nothing else happens.
2. For every line the product stock is decremented and an "out"
   StockMovement is appended, each as its own write after phase 1 committed.
   A line that fails here is logged and reported in `stock_warnings`; the
   sale stays recorded.

Concurrent finalizations of the same product are last-write-wins on the
stock field.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app

from ..errors import NotFoundError, PDVError, SaleError, StorageError, StorageUnavailableError, ValidationError
from ..models import Sale, SaleItem
from ..models._base import new_id
from ..storage import StorageBackend, StorageRouter
from ..time_utils import date_filter_window, parse_iso_datetime, utcnow
from ..validation import from_cents, normalize_payment_method, pick, to_cents, to_int
from .stock_service import build_movement


@dataclass(frozen=True)
class SaleLineInput:
    product_id: str
    quantity: int
    unit_price_cents: int | None
    product_name: str | None = None


def parse_lines(items) -> list[SaleLineInput]:
    """Validate the request's items[] before any storage access."""
    if not isinstance(items, list) or not items:
        raise ValidationError("items required")

    lines = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        product_id = pick(raw, "productId", "product_id")
        if not product_id:
            raise ValidationError(f"items[{index}].productId required")
        quantity = to_int(pick(raw, "quantity"), f"items[{index}].quantity", minimum=1)
        price = pick(raw, "unitPrice", "unit_price", "price")
        unit_price_cents = to_cents(price, f"items[{index}].unitPrice") if price is not None else None
        lines.append(SaleLineInput(
            product_id=str(product_id),
            quantity=quantity,
            unit_price_cents=unit_price_cents,
            product_name=pick(raw, "productName", "product_name"),
        ))
    return lines


def _check_stock(backend: StorageBackend, business_id: str, lines: list[SaleLineInput], fallback: bool = False) -> dict:
    """
    Products by id for every line, after checking existence and stock.

    On the fallback store, products it does not hold (created in the
    database before the outage) are left out; their lines must carry a
    unitPrice and their stock step ends up in stock_warnings.
    """
    requested = Counter()
    for line in lines:
        requested[line.product_id] += line.quantity

    products = {}
    insufficient = []
    for product_id, quantity in requested.items():
        product = backend.get_product(business_id, product_id)
        if product is None:
            if fallback:
                continue
            raise NotFoundError("Product not found", details={"product_id": product_id})
        products[product_id] = product
        if product.stock < quantity:
            insufficient.append({
                "product_id": product_id,
                "name": product.name,
                "requested_quantity": quantity,
                "stock": product.stock,
            })

    if insufficient:
        raise ValidationError("Insufficient stock", details={"items": insufficient})

    if fallback:
        unpriced = [line.product_id for line in lines if line.product_id not in products and line.unit_price_cents is None]
        if unpriced:
            raise ValidationError("unitPrice required while offline", details={"product_ids": unpriced})
    return products


def _apply_stock(backend: StorageBackend, sale: Sale, items: list[SaleItem]) -> list[dict]:
    warnings = []
    reason = f"sale - {sale.payment_method}"
    for item in items:
        movement = build_movement(
            sale.business_id, item.product_id, "out", item.quantity, reason, sale.user_id,
            product_name=item.product_name,
        )
        try:
            backend.apply_stock_movement(movement)
        except PDVError as e:
            current_app.logger.warning(
                "Stock update failed for sale %s product %s: %s",
                sale.id, item.product_id, e.message,
            )
            warnings.append({"product_id": item.product_id, "error": e.message})
    return warnings


def finalize_sale(
    storage: StorageRouter,
    business_id: str,
    user_id: str | None,
    data: dict,
) -> dict:
    """
    Record a sale from a finalized cart.

    data: {items: [{productId, quantity, unitPrice}], paymentMethod?, discount?, customerName?}
    Returns the sale dict with `items` and `stock_warnings`.

    Raises ValidationError / NotFoundError before any write, SaleError when the
    sale transaction fails.
    """
    lines = parse_lines(pick(data, "items"))
    payment_method = normalize_payment_method(pick(data, "paymentMethod", "payment_method"))
    discount = pick(data, "discount")
    discount_cents = to_cents(discount, "discount") if discount not in (None, "") else 0
    customer_name = str(pick(data, "customerName", "customer_name", default="")).strip()

    def _op(backend):
        products = _check_stock(backend, business_id, lines, fallback=backend is storage.memory)

        sale_id = new_id()
        items = []
        for line in lines:
            product = products.get(line.product_id)
            unit_price_cents = (
                line.unit_price_cents if line.unit_price_cents is not None else product.price_cents
            )
            items.append(SaleItem(
                id=new_id(),
                sale_id=sale_id,
                product_id=line.product_id,
                product_name=line.product_name or (product.name if product else line.product_id),
                quantity=line.quantity,
                unit_price_cents=unit_price_cents,
                total_cents=unit_price_cents * line.quantity,
            ))

        subtotal_cents = sum(item.total_cents for item in items)
        if discount_cents > subtotal_cents:
            raise ValidationError("discount cannot exceed the sale subtotal")

        sale = Sale(
            id=sale_id,
            business_id=business_id,
            user_id=user_id,
            subtotal_cents=subtotal_cents,
            discount_cents=discount_cents,
            total_cents=subtotal_cents - discount_cents,
            payment_method=payment_method,
            customer_name=customer_name,
            status="completed",
            created_at=utcnow(),
        )
        # Serialized before the write: committed instances expire and would reload lazily
        result = sale.to_dict(items)

        try:
            backend.record_sale(sale, items)
        except StorageUnavailableError:
            raise
        except StorageError as e:
            raise SaleError("Could not record sale", details={"reason": e.message}) from e

        result["stock_warnings"] = _apply_stock(backend, sale, items)
        return result

    return storage.run(_op)


def get_sale(storage: StorageRouter, business_id: str, sale_id: str) -> dict:
    def _op(backend):
        sale = backend.get_sale(business_id, sale_id)
        if sale is None:
            raise NotFoundError("Sale not found")
        return sale.to_dict(backend.list_sale_items([sale.id])[sale.id])

    return storage.run(_op)


def _resolve_window(date_filter, start_date, end_date, tz_name) -> tuple[datetime | None, datetime | None]:
    try:
        start, end = date_filter_window(date_filter, tz_name)
        explicit_start = parse_iso_datetime(start_date)
        explicit_end = parse_iso_datetime(end_date)
    except ValueError as e:
        raise ValidationError(str(e))
    # End is exclusive; a date-only endDate includes that whole day
    if explicit_end is not None and len(end_date.strip()) == 10:
        explicit_end = explicit_end + timedelta(days=1)
    return explicit_start or start, explicit_end or end


def list_sales(
    storage: StorageRouter,
    business_id: str,
    date_filter: str | None = None,
    payment_method: str | None = None,
    search: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> list[dict]:
    """
    Tenant-scoped sale listing, newest first, each sale with its items.

    date_filter: "today" | "week" | "month" | "all" (calendar in POS_TIMEZONE)
    search: case-insensitive match on sale id or any item's product name
    """
    start, end = _resolve_window(date_filter, start_date, end_date, current_app.config["POS_TIMEZONE"])
    method = normalize_payment_method(payment_method) if payment_method and payment_method != "all" else None

    def _op(backend):
        sales = backend.list_sales(business_id, start=start, end=end, payment_method=method)
        items = backend.list_sale_items([s.id for s in sales])
        return [sale.to_dict(items[sale.id]) for sale in sales]

    results = storage.run(_op)

    if search:
        needle = search.strip().lower()
        results = [
            sale for sale in results
            if needle in sale["id"].lower()
            or any(needle in item["product_name"].lower() for item in sale["items"])
        ]
    return results


def sales_stats(sales: list[dict]) -> dict:
    """Totals over an already-filtered listing (what the sales screen shows above the table)."""
    revenue_cents = sum(sale["total_cents"] for sale in sales)
    method_counts = Counter(sale["payment_method"] for sale in sales)
    top_method = method_counts.most_common(1)[0][0] if method_counts else None
    return {
        "total_sales": len(sales),
        "total_revenue": from_cents(revenue_cents),
        "total_revenue_cents": revenue_cents,
        "average_ticket": from_cents(round(revenue_cents / len(sales))) if sales else 0.0,
        "top_payment_method": top_method,
    }
