# Overview: Pytest coverage for the register cart.

from decimal import Decimal

import pytest

from pdv.register import Cart, ProductSnapshot


def snapshot(product_id="p1", price_cents=850, stock=10, name=None):
    return ProductSnapshot(id=product_id, name=name or product_id, price_cents=price_cents, stock=stock)


@pytest.fixture
def notices():
    return []


@pytest.fixture
def cart(notices):
    return Cart(notify=notices.append)


class TestAdd:
    def test_add_new_line(self, cart, notices):
        assert cart.add(snapshot(), 2) is True
        item = cart.get("p1")
        assert item.quantity == 2
        assert item.total_cents == 1700
        assert notices[-1].kind == "success"

    def test_repeated_scans_merge(self, cart):
        p1 = snapshot()
        cart.add(p1)
        cart.add(p1)
        cart.add(p1)
        assert len(cart) == 1
        assert cart.get("p1").quantity == 3

    def test_zero_stock_never_changes_cart(self, cart, notices):
        assert cart.add(snapshot(stock=0)) is False
        assert cart.is_empty
        assert notices[-1].kind == "warning"

    def test_add_beyond_stock_on_existing_line_rejected(self, cart, notices):
        p1 = snapshot(stock=3)
        cart.add(p1, 2)
        assert cart.add(p1, 2) is False
        assert cart.get("p1").quantity == 2
        assert notices[-1].kind == "warning"

    def test_add_more_than_stock_rejected(self, cart):
        assert cart.add(snapshot(stock=1), 2) is False
        assert cart.get("p1") is None


class TestSetQuantity:
    def test_replace_quantity(self, cart):
        cart.add(snapshot(), 1)
        assert cart.set_quantity("p1", 4) is True
        assert cart.get("p1").total_cents == 4 * 850

    def test_zero_removes_line(self, cart):
        cart.add(snapshot())
        cart.set_quantity("p1", 0)
        assert cart.get("p1") is None

    def test_above_stock_rejected(self, cart, notices):
        cart.add(snapshot(stock=5), 2)
        assert cart.set_quantity("p1", 6) is False
        assert cart.get("p1").quantity == 2
        assert notices[-1].kind == "warning"

    def test_unknown_product_ignored(self, cart):
        cart.add(snapshot())
        assert cart.set_quantity("missing", 3) is False
        assert len(cart) == 1


class TestTotals:
    def test_example_cart_total(self, cart):
        cart.add(snapshot("p1", 850), 2)
        cart.add(snapshot("p2", 320), 1)
        assert cart.total() == Decimal("20.20")
        assert cart.total_cents() == 2020

    def test_total_matches_lines_after_mutations(self, cart):
        cart.add(snapshot("p1", 850), 2)
        cart.add(snapshot("p2", 320), 3)
        cart.add(snapshot("p3", 199), 1)
        cart.set_quantity("p2", 1)
        cart.remove("p3")
        assert cart.total_cents() == sum(item.total_cents for item in cart.items)
        assert all(item.quantity <= item.product.stock for item in cart.items)

    def test_clear(self, cart):
        cart.add(snapshot())
        cart.clear()
        assert cart.is_empty
        assert cart.total() == Decimal("0.00")


def test_product_snapshot_from_api_dict():
    product = ProductSnapshot.from_dict({"id": "p1", "name": "Coca", "price": 8.5, "stock": 3})
    assert product.price_cents == 850

    product = ProductSnapshot.from_dict({"id": "p1", "name": "Coca", "price_cents": 850, "price": 8.5, "stock": 3})
    assert product.price_cents == 850


def test_payload_shape(cart):
    cart.add(snapshot("p1", 850), 2)
    payload = cart.to_payload("cash", customer_name="Maria")
    assert payload["paymentMethod"] == "cash"
    assert payload["customerName"] == "Maria"
    assert payload["items"] == [
        {"productId": "p1", "productName": "p1", "quantity": 2, "unitPrice": 8.5},
    ]
