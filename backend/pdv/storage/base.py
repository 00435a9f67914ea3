# Overview: Storage interface shared by the persistent (SQLAlchemy) and in-memory backends.

"""
Every method takes plain ids and model instances and returns model instances
(persistent or transient). Both backends return the same record shapes, so
callers serialize with `to_dict()` without knowing which backend served them.

Tenant scoping: every read that touches tenant data takes a business_id and
must filter by it.
"""

from __future__ import annotations

from datetime import datetime

from ..models import Business, Product, StockMovement, Sale, SaleItem, User, UserCredential, NFCe


class StorageBackend:
    name = "abstract"

    def is_available(self) -> bool:
        raise NotImplementedError

    def atomic(self):
        """
        Context manager grouping several writes: either all of them land or,
        when the block raises, none do. Blocks nest; the outermost one decides.
        """
        raise NotImplementedError

    # Businesses
    def list_businesses(self, business_id: str | None = None) -> list[Business]:
        """All businesses when business_id is None, otherwise just that one."""
        raise NotImplementedError

    def get_business(self, business_id: str) -> Business | None:
        raise NotImplementedError

    def add_business(self, business: Business) -> Business:
        raise NotImplementedError

    def update_business(self, business_id: str, fields: dict) -> Business | None:
        raise NotImplementedError

    # Users and credentials
    def add_user(self, user: User) -> User:
        raise NotImplementedError

    def get_user(self, user_id: str) -> User | None:
        raise NotImplementedError

    def find_user_by_email(self, email: str) -> User | None:
        raise NotImplementedError

    def list_users(self, status: str | None = None) -> list[User]:
        raise NotImplementedError

    def update_user(self, user_id: str, fields: dict) -> User | None:
        raise NotImplementedError

    def add_credential(self, credential: UserCredential) -> UserCredential:
        raise NotImplementedError

    def get_credential(self, user_id: str, role: str) -> UserCredential | None:
        raise NotImplementedError

    def touch_credential(self, credential_id: str, when: datetime) -> None:
        raise NotImplementedError

    # Products
    def list_products(
        self,
        business_id: str,
        search: str | None = None,
        category: str | None = None,
        low_stock: bool = False,
    ) -> list[Product]:
        raise NotImplementedError

    def get_product(self, business_id: str, product_id: str) -> Product | None:
        raise NotImplementedError

    def find_product_by_barcode(self, business_id: str, barcode: str) -> Product | None:
        raise NotImplementedError

    def add_product(self, product: Product) -> Product:
        raise NotImplementedError

    # Stock
    def list_stock_movements(self, business_id: str, product_id: str | None = None) -> list[StockMovement]:
        raise NotImplementedError

    def apply_stock_movement(self, movement: StockMovement) -> Product:
        """
        Append the movement and apply it to the product's stock as one unit.

        Raises NotFoundError for an unknown product and ValidationError when an
        "out" movement would take stock below zero.
        """
        raise NotImplementedError

    # Sales
    def record_sale(self, sale: Sale, items: list[SaleItem]) -> Sale:
        """Insert the sale and all of its items atomically."""
        raise NotImplementedError

    def get_sale(self, business_id: str, sale_id: str) -> Sale | None:
        raise NotImplementedError

    def list_sales(
        self,
        business_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        payment_method: str | None = None,
    ) -> list[Sale]:
        """Newest first. start is inclusive, end exclusive."""
        raise NotImplementedError

    def list_sale_items(self, sale_ids: list[str]) -> dict[str, list[SaleItem]]:
        raise NotImplementedError

    def sales_summary(
        self,
        business_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        top_limit: int = 10,
    ) -> dict:
        """
        Aggregate sales in [start, end]:
        {"count", "revenue_cents", "top_products": [...], "by_payment_method": {...}}
        """
        raise NotImplementedError

    # Fiscal receipts
    def list_nfce(self, business_id: str) -> list[NFCe]:
        raise NotImplementedError

    def get_nfce(self, business_id: str, nfce_id: str) -> NFCe | None:
        raise NotImplementedError

    def next_nfce_number(self, business_id: str, series: int) -> int:
        raise NotImplementedError

    def add_nfce(self, nfce: NFCe) -> NFCe:
        raise NotImplementedError

    def update_nfce(self, business_id: str, nfce_id: str, fields: dict) -> NFCe | None:
        raise NotImplementedError
