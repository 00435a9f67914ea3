# Overview: SQLAlchemy-backed storage; translates driver failures into StorageError types.

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime

from flask import Flask, current_app
from sqlalchemy import func, or_, text
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError, SQLAlchemyError

from ..errors import NotFoundError, StorageError, StorageUnavailableError, ValidationError
from ..models import Business, Product, StockMovement, Sale, SaleItem, User, UserCredential, NFCe
from .base import StorageBackend

CONNECTION_ERRORS = (OperationalError, InterfaceError, DisconnectionError)


class PersistentBackend(StorageBackend):
    name = "persistent"

    def __init__(self, db):
        self._db = db
        self.enabled = True
        # Per-thread flag: inside atomic(), writes flush and the outer block commits
        self._local = threading.local()

    def init_app(self, app: Flask) -> None:
        self.enabled = app.config.get("PERSISTENT_STORAGE_ENABLED", True)

    @property
    def session(self):
        return self._db.session

    def connect(self, create_tables: bool = True) -> bool:
        """
        Verify connectivity at startup and optionally create missing tables.

        Failure is logged, not raised: the app keeps serving from the
        in-memory store and picks the database up once it answers.
        """
        if not self.enabled:
            current_app.logger.info("Persistent storage disabled; serving from in-memory store")
            return False
        try:
            if create_tables:
                self._db.create_all()
            self.session.execute(text("SELECT 1"))
            current_app.logger.info("Connected to %s", self._db.engine.url.render_as_string(hide_password=True))
            return True
        except SQLAlchemyError:
            self.session.rollback()
            current_app.logger.exception("Could not connect to persistent storage")
            return False

    def is_available(self) -> bool:
        if not self.enabled:
            return False
        try:
            self.session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            self.session.rollback()
            return False

    @contextmanager
    def _transaction(self):
        """Commit on success; roll back and translate any SQLAlchemy failure."""
        if getattr(self._local, "atomic", False):
            yield self.session
            self.session.flush()
            return
        try:
            yield self.session
            self.session.commit()
        except CONNECTION_ERRORS as e:
            self.session.rollback()
            raise StorageUnavailableError("Database connection lost") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            current_app.logger.exception("Database write failed")
            raise StorageError("Database error") from e
        except Exception:
            self.session.rollback()
            raise

    @contextmanager
    def atomic(self):
        if getattr(self._local, "atomic", False):
            yield
            return
        with self._transaction():
            self._local.atomic = True
            try:
                yield
            finally:
                self._local.atomic = False

    @contextmanager
    def _reading(self):
        try:
            yield self.session
        except CONNECTION_ERRORS as e:
            self.session.rollback()
            raise StorageUnavailableError("Database connection lost") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            current_app.logger.exception("Database query failed")
            raise StorageError("Database error") from e

    def _update(self, instance, fields: dict):
        for key, value in fields.items():
            setattr(instance, key, value)
        return instance

    # Businesses
    def list_businesses(self, business_id=None):
        with self._reading() as s:
            query = s.query(Business)
            if business_id is not None:
                query = query.filter(Business.id == business_id)
            return query.order_by(Business.name.asc()).all()

    def get_business(self, business_id):
        with self._reading() as s:
            return s.get(Business, business_id)

    def add_business(self, business):
        with self._transaction() as s:
            s.add(business)
        return business

    def update_business(self, business_id, fields):
        with self._transaction() as s:
            business = s.get(Business, business_id)
            if business is None:
                return None
            self._update(business, fields)
        return business

    # Users and credentials
    def add_user(self, user):
        with self._transaction() as s:
            s.add(user)
        return user

    def get_user(self, user_id):
        with self._reading() as s:
            return s.get(User, user_id)

    def find_user_by_email(self, email):
        with self._reading() as s:
            return s.query(User).filter(func.lower(User.email) == email.lower()).first()

    def list_users(self, status=None):
        with self._reading() as s:
            query = s.query(User)
            if status:
                query = query.filter(User.status == status)
            return query.order_by(User.created_at.desc()).all()

    def update_user(self, user_id, fields):
        with self._transaction() as s:
            user = s.get(User, user_id)
            if user is None:
                return None
            self._update(user, fields)
        return user

    def add_credential(self, credential):
        with self._transaction() as s:
            s.add(credential)
        return credential

    def get_credential(self, user_id, role):
        with self._reading() as s:
            return s.query(UserCredential).filter_by(user_id=user_id, role=role).first()

    def touch_credential(self, credential_id, when):
        with self._transaction() as s:
            credential = s.get(UserCredential, credential_id)
            if credential is not None:
                credential.last_login = when

    # Products
    def list_products(self, business_id, search=None, category=None, low_stock=False):
        with self._reading() as s:
            query = s.query(Product).filter(Product.business_id == business_id)
            if search:
                pattern = f"%{search.lower()}%"
                query = query.filter(or_(
                    func.lower(Product.name).like(pattern),
                    Product.barcode == search,
                ))
            if category:
                query = query.filter(Product.category == category)
            if low_stock:
                query = query.filter(Product.stock <= Product.min_stock)
            return query.order_by(Product.name.asc()).all()

    def get_product(self, business_id, product_id):
        with self._reading() as s:
            return s.query(Product).filter_by(business_id=business_id, id=product_id).first()

    def find_product_by_barcode(self, business_id, barcode):
        with self._reading() as s:
            return s.query(Product).filter_by(business_id=business_id, barcode=barcode).first()

    def add_product(self, product):
        with self._transaction() as s:
            s.add(product)
        return product

    # Stock
    def list_stock_movements(self, business_id, product_id=None):
        with self._reading() as s:
            query = s.query(StockMovement).filter(StockMovement.business_id == business_id)
            if product_id:
                query = query.filter(StockMovement.product_id == product_id)
            return query.order_by(StockMovement.created_at.desc()).all()

    def apply_stock_movement(self, movement):
        with self._transaction() as s:
            product = (
                s.query(Product)
                .filter_by(business_id=movement.business_id, id=movement.product_id)
                .first()
            )
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
            s.add(movement)
        return product

    # Sales
    def record_sale(self, sale, items):
        with self._transaction() as s:
            s.add(sale)
            s.flush()
            for item in items:
                s.add(item)
        return sale

    def get_sale(self, business_id, sale_id):
        with self._reading() as s:
            return s.query(Sale).filter_by(business_id=business_id, id=sale_id).first()

    def list_sales(self, business_id, start=None, end=None, payment_method=None):
        with self._reading() as s:
            query = s.query(Sale).filter(Sale.business_id == business_id)
            if start is not None:
                query = query.filter(Sale.created_at >= start)
            if end is not None:
                query = query.filter(Sale.created_at < end)
            if payment_method:
                query = query.filter(Sale.payment_method == payment_method)
            return query.order_by(Sale.created_at.desc()).all()

    def list_sale_items(self, sale_ids):
        grouped: dict[str, list[SaleItem]] = {sale_id: [] for sale_id in sale_ids}
        if not sale_ids:
            return grouped
        with self._reading() as s:
            for item in s.query(SaleItem).filter(SaleItem.sale_id.in_(sale_ids)).all():
                grouped[item.sale_id].append(item)
        return grouped

    def sales_summary(self, business_id, start=None, end=None, top_limit=10):
        with self._reading() as s:
            filters = [Sale.business_id == business_id]
            if start is not None:
                filters.append(Sale.created_at >= start)
            if end is not None:
                filters.append(Sale.created_at <= end)

            count, revenue = (
                s.query(func.count(Sale.id), func.coalesce(func.sum(Sale.total_cents), 0))
                .filter(*filters)
                .one()
            )

            total_sold = func.sum(SaleItem.quantity).label("total_sold")
            top_rows = (
                s.query(
                    SaleItem.product_id,
                    func.max(SaleItem.product_name),
                    total_sold,
                    func.sum(SaleItem.total_cents),
                )
                .join(Sale, Sale.id == SaleItem.sale_id)
                .filter(*filters)
                .group_by(SaleItem.product_id)
                .order_by(total_sold.desc(), func.max(SaleItem.product_name).asc())
                .limit(top_limit)
                .all()
            )

            method_rows = (
                s.query(Sale.payment_method, func.count(Sale.id), func.sum(Sale.total_cents))
                .filter(*filters)
                .group_by(Sale.payment_method)
                .all()
            )

        return {
            "count": int(count or 0),
            "revenue_cents": int(revenue or 0),
            "top_products": [
                {
                    "product_id": product_id,
                    "name": name,
                    "total_sold": int(sold or 0),
                    "revenue_cents": int(product_revenue or 0),
                }
                for product_id, name, sold, product_revenue in top_rows
            ],
            "by_payment_method": {
                method: {"count": int(method_count), "revenue_cents": int(method_revenue or 0)}
                for method, method_count, method_revenue in method_rows
            },
        }

    # Fiscal receipts
    def list_nfce(self, business_id):
        with self._reading() as s:
            return (
                s.query(NFCe)
                .filter(NFCe.business_id == business_id)
                .order_by(NFCe.created_at.desc())
                .all()
            )

    def get_nfce(self, business_id, nfce_id):
        with self._reading() as s:
            return s.query(NFCe).filter_by(business_id=business_id, id=nfce_id).first()

    def next_nfce_number(self, business_id, series):
        with self._reading() as s:
            current = (
                s.query(func.max(NFCe.number))
                .filter(NFCe.business_id == business_id, NFCe.series == series)
                .scalar()
            )
        return (current or 0) + 1

    def add_nfce(self, nfce):
        with self._transaction() as s:
            s.add(nfce)
        return nfce

    def update_nfce(self, business_id, nfce_id, fields):
        with self._transaction() as s:
            nfce = s.query(NFCe).filter_by(business_id=business_id, id=nfce_id).first()
            if nfce is None:
                return None
            self._update(nfce, fields)
        return nfce
