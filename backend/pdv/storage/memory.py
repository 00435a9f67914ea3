# Overview: Process-local fallback storage used while no database connection is available.

from __future__ import annotations

import threading
from collections import defaultdict
from contextlib import contextmanager

from ..errors import NotFoundError, ValidationError
from .base import StorageBackend

TABLES = ("businesses", "users", "credentials", "products", "stock_movements", "sales", "sale_items", "nfce")


class InMemoryBackend(StorageBackend):
    """
    Ordered in-process collections holding transient model instances.

    Reads filter by business_id exactly like the SQL queries in
    PersistentBackend. Nothing survives a process restart. One instance is
    created per app by create_app() and injected through the StorageRouter.
    """
    name = "memory"

    def __init__(self):
        self._lock = threading.RLock()
        self._tables: dict[str, list] = {table: [] for table in TABLES}

    def is_available(self) -> bool:
        return True

    @contextmanager
    def atomic(self):
        """Rows appended inside the block are dropped if it raises. Field updates are not undone."""
        with self._lock:
            snapshot = {table: list(rows) for table, rows in self._tables.items()}
            try:
                yield
            except Exception:
                for table, rows in snapshot.items():
                    self._tables[table][:] = rows
                raise

    def reset(self) -> None:
        with self._lock:
            for rows in self._tables.values():
                rows.clear()

    def _rows(self, table: str) -> list:
        with self._lock:
            return list(self._tables[table])

    def _append(self, table: str, record):
        with self._lock:
            self._tables[table].append(record)
        return record

    def _first(self, table: str, **criteria):
        for record in self._rows(table):
            if all(getattr(record, key) == value for key, value in criteria.items()):
                return record
        return None

    def _update(self, record, fields: dict):
        if record is None:
            return None
        with self._lock:
            for key, value in fields.items():
                setattr(record, key, value)
        return record

    # Businesses
    def list_businesses(self, business_id=None):
        rows = self._rows("businesses")
        if business_id is not None:
            rows = [b for b in rows if b.id == business_id]
        return sorted(rows, key=lambda b: b.name)

    def get_business(self, business_id):
        return self._first("businesses", id=business_id)

    def add_business(self, business):
        return self._append("businesses", business)

    def update_business(self, business_id, fields):
        return self._update(self.get_business(business_id), fields)

    # Users and credentials
    def add_user(self, user):
        return self._append("users", user)

    def get_user(self, user_id):
        return self._first("users", id=user_id)

    def find_user_by_email(self, email):
        for user in self._rows("users"):
            if user.email.lower() == email.lower():
                return user
        return None

    def list_users(self, status=None):
        rows = self._rows("users")
        if status:
            rows = [u for u in rows if u.status == status]
        return sorted(rows, key=lambda u: u.created_at, reverse=True)

    def update_user(self, user_id, fields):
        return self._update(self.get_user(user_id), fields)

    def add_credential(self, credential):
        return self._append("credentials", credential)

    def get_credential(self, user_id, role):
        return self._first("credentials", user_id=user_id, role=role)

    def touch_credential(self, credential_id, when):
        self._update(self._first("credentials", id=credential_id), {"last_login": when})

    # Products
    def list_products(self, business_id, search=None, category=None, low_stock=False):
        rows = [p for p in self._rows("products") if p.business_id == business_id]
        if search:
            needle = search.lower()
            rows = [p for p in rows if needle in p.name.lower() or p.barcode == search]
        if category:
            rows = [p for p in rows if p.category == category]
        if low_stock:
            rows = [p for p in rows if p.stock <= p.min_stock]
        return sorted(rows, key=lambda p: p.name)

    def get_product(self, business_id, product_id):
        return self._first("products", business_id=business_id, id=product_id)

    def find_product_by_barcode(self, business_id, barcode):
        return self._first("products", business_id=business_id, barcode=barcode)

    def add_product(self, product):
        return self._append("products", product)

    # Stock
    def list_stock_movements(self, business_id, product_id=None):
        rows = [m for m in self._rows("stock_movements") if m.business_id == business_id]
        if product_id:
            rows = [m for m in rows if m.product_id == product_id]
        return sorted(rows, key=lambda m: m.created_at, reverse=True)

    def apply_stock_movement(self, movement):
        with self._lock:
            product = self.get_product(movement.business_id, movement.product_id)
            if product is None:
                raise NotFoundError("Product not found")
            new_stock = product.stock + movement.quantity_delta
            if new_stock < 0:
                raise ValidationError(
                    "Insufficient stock",
                    details={"product_id": product.id, "stock": product.stock, "requested": movement.quantity},
                )
            product.stock = new_stock
            movement.product_name = movement.product_name or product.name
            self._tables["stock_movements"].append(movement)
        return product

    # Sales
    def record_sale(self, sale, items):
        with self._lock:
            self._tables["sales"].append(sale)
            self._tables["sale_items"].extend(items)
        return sale

    def get_sale(self, business_id, sale_id):
        return self._first("sales", business_id=business_id, id=sale_id)

    def _sales_in_range(self, business_id, start, end, end_inclusive=False):
        rows = [s for s in self._rows("sales") if s.business_id == business_id]
        if start is not None:
            rows = [s for s in rows if s.created_at >= start]
        if end is not None:
            if end_inclusive:
                rows = [s for s in rows if s.created_at <= end]
            else:
                rows = [s for s in rows if s.created_at < end]
        return rows

    def list_sales(self, business_id, start=None, end=None, payment_method=None):
        rows = self._sales_in_range(business_id, start, end)
        if payment_method:
            rows = [s for s in rows if s.payment_method == payment_method]
        return sorted(rows, key=lambda s: s.created_at, reverse=True)

    def list_sale_items(self, sale_ids):
        grouped = {sale_id: [] for sale_id in sale_ids}
        for item in self._rows("sale_items"):
            if item.sale_id in grouped:
                grouped[item.sale_id].append(item)
        return grouped

    def sales_summary(self, business_id, start=None, end=None, top_limit=10):
        sales = self._sales_in_range(business_id, start, end, end_inclusive=True)
        sale_ids = {s.id for s in sales}

        by_method: dict[str, dict] = defaultdict(lambda: {"count": 0, "revenue_cents": 0})
        for sale in sales:
            by_method[sale.payment_method]["count"] += 1
            by_method[sale.payment_method]["revenue_cents"] += sale.total_cents

        products: dict[str, dict] = {}
        for item in self._rows("sale_items"):
            if item.sale_id not in sale_ids:
                continue
            entry = products.setdefault(item.product_id, {
                "product_id": item.product_id,
                "name": item.product_name,
                "total_sold": 0,
                "revenue_cents": 0,
            })
            entry["total_sold"] += item.quantity
            entry["revenue_cents"] += item.total_cents

        top = sorted(products.values(), key=lambda p: (-p["total_sold"], p["name"]))[:top_limit]

        return {
            "count": len(sales),
            "revenue_cents": sum(s.total_cents for s in sales),
            "top_products": top,
            "by_payment_method": dict(by_method),
        }

    # Fiscal receipts
    def list_nfce(self, business_id):
        rows = [n for n in self._rows("nfce") if n.business_id == business_id]
        return sorted(rows, key=lambda n: n.created_at, reverse=True)

    def get_nfce(self, business_id, nfce_id):
        return self._first("nfce", business_id=business_id, id=nfce_id)

    def next_nfce_number(self, business_id, series):
        numbers = [
            n.number for n in self._rows("nfce")
            if n.business_id == business_id and n.series == series
        ]
        return max(numbers, default=0) + 1

    def add_nfce(self, nfce):
        return self._append("nfce", nfce)

    def update_nfce(self, business_id, nfce_id, fields):
        return self._update(self.get_nfce(business_id, nfce_id), fields)
