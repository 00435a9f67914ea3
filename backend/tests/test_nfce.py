# Overview: Pytest coverage for NFCe fiscal receipt records.

import pytest

from conftest import auth_headers

ACCESS_KEY = "3524 0612 3456 7800 0190 6500 1000 0000 0110 0000 0010"


@pytest.fixture
def sale(client, operator_token, coca):
    response = client.post(
        "/api/sales",
        json={"items": [{"productId": coca.id, "quantity": 2, "unitPrice": 8.50}]},
        headers=auth_headers(operator_token),
    )
    return response.json


def create(client, token, **body):
    return client.post("/api/nfce", json=body, headers=auth_headers(token))


def test_create_numbers_sequentially(client, operator_token, sale, skol):
    response = create(client, operator_token, saleId=sale["id"])
    assert response.status_code == 201
    nfce = response.json
    assert nfce["number"] == 1
    assert nfce["series"] == 1
    assert nfce["status"] == "pending"
    assert nfce["total"] == 17.0

    other = client.post(
        "/api/sales",
        json={"items": [{"productId": skol.id, "quantity": 1, "unitPrice": 3.20}]},
        headers=auth_headers(operator_token),
    ).json
    assert create(client, operator_token, saleId=other["id"]).json["number"] == 2


def test_one_active_receipt_per_sale(client, operator_token, sale):
    create(client, operator_token, saleId=sale["id"])
    response = create(client, operator_token, saleId=sale["id"])
    assert response.status_code == 409


def test_unknown_sale(client, operator_token, business_a):
    assert create(client, operator_token, saleId="missing").status_code == 404


def test_invalid_access_key(client, operator_token, sale):
    assert create(client, operator_token, saleId=sale["id"], accessKey="123").status_code == 400


def test_authorize_then_cancel(client, operator_token, sale):
    nfce = create(client, operator_token, saleId=sale["id"]).json

    response = client.post(
        f"/api/nfce/{nfce['id']}/status",
        json={"status": "autorizada", "protocol": "135240000000001", "accessKey": ACCESS_KEY},
        headers=auth_headers(operator_token),
    )
    assert response.status_code == 200
    assert response.json["status"] == "authorized"
    assert response.json["authorization_protocol"] == "135240000000001"
    assert len(response.json["access_key"]) == 44
    assert response.json["authorized_at"] is not None

    response = client.post(
        f"/api/nfce/{nfce['id']}/status", json={"status": "pending"}, headers=auth_headers(operator_token)
    )
    assert response.status_code == 409

    response = client.post(
        f"/api/nfce/{nfce['id']}/status", json={"status": "cancelled"}, headers=auth_headers(operator_token)
    )
    assert response.json["status"] == "cancelled"

    # A cancelled receipt frees the sale for a new one
    assert create(client, operator_token, saleId=sale["id"]).status_code == 201


def test_reject_records_reason(client, operator_token, sale):
    nfce = create(client, operator_token, saleId=sale["id"]).json
    response = client.post(
        f"/api/nfce/{nfce['id']}/status",
        json={"status": "rejected", "rejectionReason": "CNPJ inválido"},
        headers=auth_headers(operator_token),
    )
    assert response.json["rejection_reason"] == "CNPJ inválido"


def test_list_is_tenant_scoped(client, operator_token, admin_b_token, sale):
    create(client, operator_token, saleId=sale["id"])
    assert len(client.get("/api/nfce", headers=auth_headers(operator_token)).json) == 1
    assert client.get("/api/nfce", headers=auth_headers(admin_b_token)).json == []
