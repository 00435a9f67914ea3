# Overview: Pytest coverage for persistent/in-memory backend selection.

"""
When the database is unreachable every operation is served by the
in-memory store; once it answers again, operations go back to it. Records
written to the fallback store are not migrated.
"""

import pytest

from pdv.errors import StorageUnavailableError, ValidationError
from pdv.extensions import db
from pdv.models import Sale
from conftest import auth_headers

pytestmark = pytest.mark.storage


@pytest.fixture
def database_down(storage):
    storage.persistent.enabled = False
    yield
    storage.persistent.enabled = True


def create_product(client, token, **fields):
    body = {"name": "Coca-Cola 2L", "price": "8.50", "stock": 10, "barcode": "7894900011517"}
    body.update(fields)
    response = client.post("/api/products", json=body, headers=auth_headers(token))
    assert response.status_code == 201
    return response.json


class TestRouter:
    def test_prefers_persistent_when_available(self, storage):
        assert storage.select() is storage.persistent

    def test_availability_checked_on_every_call(self, storage, database_down):
        assert storage.select() is storage.memory
        storage.persistent.enabled = True
        assert storage.select() is storage.persistent

    def test_connection_failure_mid_operation_reruns_on_memory(self, storage):
        def operation(backend):
            if backend is storage.persistent:
                raise StorageUnavailableError("Database connection lost")
            return backend.name

        assert storage.run(operation) == "memory"

    def test_other_errors_propagate(self, storage):
        calls = []

        def operation(backend):
            calls.append(backend.name)
            raise ValidationError("bad input")

        with pytest.raises(ValidationError):
            storage.run(operation)
        assert calls == ["persistent"]


class TestFallbackSales:
    def test_sale_recorded_in_memory_and_listed(self, client, storage, admin_token, operator_token, database_down):
        product = create_product(client, admin_token)

        response = client.post(
            "/api/sales",
            json={
                "items": [{"productId": product["id"], "quantity": 2, "unitPrice": 8.50}],
                "paymentMethod": "cash",
            },
            headers=auth_headers(operator_token),
        )
        assert response.status_code == 201
        sale = response.json
        assert sale["total"] == 17.00

        response = client.get("/api/sales", headers=auth_headers(operator_token))
        assert [s["id"] for s in response.json] == [sale["id"]]

        response = client.get(f"/api/products/{product['id']}", headers=auth_headers(operator_token))
        assert response.json["stock"] == 8

        movements = client.get("/api/stock/movements", headers=auth_headers(operator_token)).json
        assert len(movements) == 1
        assert movements[0]["type"] == "out"

    def test_fallback_records_not_migrated_on_reconnect(self, client, storage, admin_token, operator_token):
        storage.persistent.enabled = False
        product = create_product(client, admin_token)
        client.post(
            "/api/sales",
            json={"items": [{"productId": product["id"], "quantity": 1, "unitPrice": 8.50}]},
            headers=auth_headers(operator_token),
        )
        storage.persistent.enabled = True

        response = client.get("/api/sales", headers=auth_headers(operator_token))
        assert response.status_code == 200
        assert response.json == []
        assert db.session.query(Sale).count() == 0

    def test_fallback_is_tenant_scoped(self, client, admin_token, admin_b_token, database_down):
        create_product(client, admin_token)
        response = client.get("/api/products", headers=auth_headers(admin_b_token))
        assert response.json == []


def test_health_reports_active_backend(client, storage):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json["storage"] == "persistent"
    assert response.json["status"] == "ok"

    storage.persistent.enabled = False
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json["storage"] == "memory"
    assert response.json["status"] == "degraded"


class TestFallbackWithDatabaseProducts:
    """Products created before the outage live only in the database."""

    def _payload(self, coca, skol, with_prices=True):
        items = [
            {"productId": coca.id, "productName": "Coca-Cola 2L", "quantity": 2, "unitPrice": 8.50},
            {"productId": skol.id, "productName": "Cerveja Skol Lata 350ml", "quantity": 1, "unitPrice": 3.20},
        ]
        if not with_prices:
            for item in items:
                del item["unitPrice"]
        return {"items": items, "paymentMethod": "cash"}

    def test_sale_recorded_from_request_lines(self, client, storage, operator_token, coca, skol):
        payload = self._payload(coca, skol)
        storage.persistent.enabled = False

        response = client.post("/api/sales", json=payload, headers=auth_headers(operator_token))

        assert response.status_code == 201
        sale = response.json
        assert sale["total"] == 20.20
        assert [item["product_name"] for item in sale["items"]] == ["Coca-Cola 2L", "Cerveja Skol Lata 350ml"]
        assert {w["error"] for w in sale["stock_warnings"]} == {"Product not found"}
        assert len(sale["stock_warnings"]) == 2

        listed = client.get("/api/sales", headers=auth_headers(operator_token)).json
        assert [s["id"] for s in listed] == [sale["id"]]

        storage.persistent.enabled = True
        assert db.session.query(Sale).count() == 0

    def test_unit_price_required_while_offline(self, client, storage, operator_token, coca, skol):
        payload = self._payload(coca, skol, with_prices=False)
        storage.persistent.enabled = False

        response = client.post("/api/sales", json=payload, headers=auth_headers(operator_token))

        assert response.status_code == 400
        assert response.json["error"] == "unitPrice required while offline"

    def test_connection_lost_during_sale_write(self, client, storage, operator_token, coca, skol, monkeypatch):
        payload = self._payload(coca, skol)

        def connection_lost(sale, items):
            raise StorageUnavailableError("Database connection lost")

        monkeypatch.setattr(storage.persistent, "record_sale", connection_lost)

        response = client.post("/api/sales", json=payload, headers=auth_headers(operator_token))

        assert response.status_code == 201
        assert response.json["total"] == 20.20
        assert storage.memory.get_sale(response.json["business_id"], response.json["id"]) is not None
        assert db.session.query(Sale).count() == 0
