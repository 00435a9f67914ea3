# Overview: Pytest coverage for the register checkout flow against the in-process API.

import httpx
import pytest
from sqlalchemy.exc import SQLAlchemyError

from pdv.extensions import db
from pdv.models import Sale
from pdv.register import ApiError, Checkout, PDVClient, STANDBY_TIMEOUT


@pytest.fixture
def api(app, operator_token):
    client = PDVClient(
        base_url="http://pdv.test",
        token=operator_token,
        transport=httpx.WSGITransport(app=app),
    )
    yield client
    client.close()


@pytest.fixture
def notices():
    return []


@pytest.fixture
def checkout(api, notices):
    return Checkout(api, notify=notices.append, clock=lambda: 1000.0)


class TestScan:
    def test_scan_adds_product(self, checkout, coca):
        assert checkout.scan("7894900011517") is True
        assert checkout.cart.get(coca.id).quantity == 1

    def test_repeated_scan_increments(self, checkout, coca):
        checkout.scan("7894900011517")
        checkout.scan("7894900011517")
        assert len(checkout.cart) == 1
        assert checkout.cart.get(coca.id).quantity == 2

    def test_unknown_barcode_notifies(self, checkout, notices, business_a):
        assert checkout.scan("0000000000000") is False
        assert checkout.cart.is_empty
        assert notices[-1].kind == "error"
        assert notices[-1].title == "Product not found"


class TestFinalize:
    def test_empty_cart_is_noop(self, checkout, monkeypatch):
        def unexpected(*args, **kwargs):
            raise AssertionError("no request expected")

        monkeypatch.setattr(checkout.client, "create_sale", unexpected)
        assert checkout.finalize("cash") is None

    def test_finalize_clears_cart(self, checkout, notices, coca, skol):
        checkout.scan("7894900011517")
        checkout.scan("7894900011517")
        checkout.scan("7891991010924")

        sale = checkout.finalize("cash")

        assert sale["total"] == 20.20
        assert sale["items_count"] == 2
        assert checkout.cart.is_empty
        assert notices[-1].kind == "sale"
        assert db.session.query(Sale).count() == 1

    def test_failure_keeps_cart_for_retry(self, checkout, notices, coca, monkeypatch):
        checkout.scan("7894900011517")
        session = db.session()

        def failing_commit():
            raise SQLAlchemyError("disk I/O error")

        monkeypatch.setattr(session, "commit", failing_commit)
        assert checkout.finalize("cash") is None
        monkeypatch.undo()

        assert checkout.cart.get(coca.id).quantity == 1
        assert notices[-1].kind == "error"
        assert db.session.query(Sale).count() == 0

        sale = checkout.finalize("cash")
        assert sale is not None
        assert checkout.cart.is_empty


class TestStandby:
    def test_idle_empty_cart_enters_standby(self, checkout):
        checkout.record_activity(now=0)
        assert checkout.in_standby(now=STANDBY_TIMEOUT - 1) is False
        assert checkout.in_standby(now=STANDBY_TIMEOUT) is True

    def test_non_empty_cart_stays_awake(self, checkout, coca):
        checkout.scan("7894900011517")
        checkout.record_activity(now=0)
        assert checkout.in_standby(now=STANDBY_TIMEOUT * 10) is False

    def test_forced_standby_and_wake(self, checkout):
        checkout.record_activity(now=0)
        checkout.enter_standby()
        assert checkout.in_standby(now=1) is True
        checkout.record_activity(now=2)
        assert checkout.in_standby(now=3) is False


def test_client_raises_api_error_with_server_message(api, business_a):
    with pytest.raises(ApiError) as exc:
        api.create_sale({"items": []})
    assert exc.value.status_code == 400
    assert exc.value.message == "items required"


def test_client_login_stores_token(app, client):
    api = PDVClient(base_url="http://pdv.test", transport=httpx.WSGITransport(app=app))
    user = api.login("admin@vitana.com", "SuperAdmin2024!", "super_admin")
    assert user["role"] == "super_admin"
    assert api.token
    api.close()
