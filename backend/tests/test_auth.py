# Overview: Pytest coverage for registration, approval and login.

"""
Authentication Tests

Registration only records a request; the account can log in after a super
admin approves it for a role.
"""

import pytest

from pdv.errors import StorageError
from pdv.extensions import db
from pdv.models import Business
from pdv.services.auth_service import (
    PasswordValidationError,
    hash_password,
    validate_password_strength,
    verify_password,
)
from conftest import auth_headers, get_auth_token

REGISTRATION = {
    "name": "João Silva",
    "email": "joao@deposito.com",
    "phone": "11999990000",
    "businessName": "Depósito do João",
    "businessType": "Depósito de Bebidas",
}


def register(client, **overrides):
    body = dict(REGISTRATION, **overrides)
    return client.post("/api/auth/register", json=body)


class TestPasswords:
    @pytest.mark.parametrize("password", ["short1A", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere"])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(PasswordValidationError):
            validate_password_strength(password)

    def test_hash_and_verify(self, app):
        password_hash = hash_password("Caixa2024!")
        assert password_hash != "Caixa2024!"
        assert verify_password("Caixa2024!", password_hash)
        assert not verify_password("caixa2024!", password_hash)

    def test_verify_tolerates_malformed_hash(self):
        assert verify_password("Caixa2024!", "not-a-hash") is False


class TestRegistration:
    def test_register_creates_pending_user(self, client, super_admin_token):
        response = register(client)
        assert response.status_code == 201

        response = client.get("/api/auth/users?status=pending", headers=auth_headers(super_admin_token))
        assert response.status_code == 200
        assert [u["email"] for u in response.json] == ["joao@deposito.com"]
        assert response.json[0]["status"] == "pending"

    def test_duplicate_email_conflicts(self, client):
        register(client)
        response = register(client, email="JOAO@deposito.com")
        assert response.status_code == 409

    def test_missing_fields(self, client):
        response = client.post("/api/auth/register", json={"email": "x@y.com"})
        assert response.status_code == 400

    def test_pending_user_cannot_login(self, client):
        register(client)
        response = client.post("/api/auth/login", json={
            "email": "joao@deposito.com", "password": "Caixa2024!", "role": "admin",
        })
        assert response.status_code == 401


class TestApproval:
    def test_approve_creates_business_and_allows_login(self, client, super_admin_token):
        user_id = register(client).json["user_id"]

        response = client.post(
            f"/api/auth/users/{user_id}/approve",
            json={"password": "Gerente2024!", "role": "admin"},
            headers=auth_headers(super_admin_token),
        )
        assert response.status_code == 200
        business_id = response.json["credential"]["business_id"]
        assert response.json["user"]["status"] == "approved"
        assert "password_hash" not in response.json["credential"]

        response = client.post("/api/auth/login", json={
            "email": "joao@deposito.com", "password": "Gerente2024!", "role": "admin",
        })
        assert response.status_code == 200
        assert response.json["user"]["business_id"] == business_id
        assert response.json["user"]["role"] == "admin"

        me = client.get("/api/auth/me", headers=auth_headers(response.json["token"]))
        assert me.json["user"]["email"] == "joao@deposito.com"

        businesses = client.get("/api/business", headers=auth_headers(response.json["token"])).json
        assert [b["name"] for b in businesses] == ["Depósito do João"]

    def test_role_credentials_are_separate(self, client, super_admin_token):
        user_id = register(client).json["user_id"]
        client.post(
            f"/api/auth/users/{user_id}/approve",
            json={"password": "Gerente2024!", "role": "admin"},
            headers=auth_headers(super_admin_token),
        )
        assert get_auth_token(client, "joao@deposito.com", "Gerente2024!", "operator") is None

        response = client.post(
            f"/api/auth/users/{user_id}/approve",
            json={"password": "Caixa2024!", "role": "operator"},
            headers=auth_headers(super_admin_token),
        )
        assert response.status_code == 200
        assert get_auth_token(client, "joao@deposito.com", "Caixa2024!", "operator")

        response = client.post(
            f"/api/auth/users/{user_id}/approve",
            json={"password": "Caixa2024!", "role": "operator"},
            headers=auth_headers(super_admin_token),
        )
        assert response.status_code == 409

    def test_approve_into_existing_business(self, client, super_admin_token, business_a):
        user_id = register(client).json["user_id"]
        response = client.post(
            f"/api/auth/users/{user_id}/approve",
            json={"password": "Caixa2024!", "role": "operator", "businessId": business_a.id},
            headers=auth_headers(super_admin_token),
        )
        assert response.json["credential"]["business_id"] == business_a.id

    def test_weak_password_on_approval(self, client, super_admin_token):
        user_id = register(client).json["user_id"]
        response = client.post(
            f"/api/auth/users/{user_id}/approve",
            json={"password": "weak", "role": "admin"},
            headers=auth_headers(super_admin_token),
        )
        assert response.status_code == 400

    def test_only_super_admin_approves(self, client, admin_token):
        user_id = register(client).json["user_id"]
        response = client.post(
            f"/api/auth/users/{user_id}/approve",
            json={"password": "Gerente2024!", "role": "admin"},
            headers=auth_headers(admin_token),
        )
        assert response.status_code == 403

    def test_reject(self, client, super_admin_token):
        user_id = register(client).json["user_id"]
        response = client.post(
            f"/api/auth/users/{user_id}/reject",
            json={"reason": "Documentação incompleta"},
            headers=auth_headers(super_admin_token),
        )
        assert response.status_code == 200
        assert response.json["user"]["status"] == "rejected"
        assert response.json["user"]["rejection_reason"] == "Documentação incompleta"

    def test_approve_unknown_user(self, client, super_admin_token):
        response = client.post(
            "/api/auth/users/missing/approve",
            json={"password": "Gerente2024!", "role": "admin"},
            headers=auth_headers(super_admin_token),
        )
        assert response.status_code == 404

    def test_failed_approval_leaves_no_business(self, client, storage, super_admin_token, monkeypatch):
        user_id = register(client).json["user_id"]

        def write_failed(credential):
            raise StorageError("Database error")

        monkeypatch.setattr(storage.persistent, "add_credential", write_failed)

        response = client.post(
            f"/api/auth/users/{user_id}/approve",
            json={"password": "Gerente2024!", "role": "admin"},
            headers=auth_headers(super_admin_token),
        )
        assert response.status_code == 500
        assert db.session.query(Business).count() == 0

        pending = client.get("/api/auth/users?status=pending", headers=auth_headers(super_admin_token)).json
        assert [u["id"] for u in pending] == [user_id]
        assert pending[0]["business_id"] is None

    def test_failed_approval_leaves_no_business_while_offline(self, client, storage, super_admin_token, monkeypatch):
        storage.persistent.enabled = False
        user_id = register(client).json["user_id"]

        def write_failed(credential):
            raise StorageError("Out of memory")

        monkeypatch.setattr(storage.memory, "add_credential", write_failed)

        response = client.post(
            f"/api/auth/users/{user_id}/approve",
            json={"password": "Gerente2024!", "role": "admin"},
            headers=auth_headers(super_admin_token),
        )
        assert response.status_code == 500
        assert storage.memory.list_businesses() == []
        assert storage.memory.get_user(user_id).status == "pending"


class TestLogin:
    def test_super_admin_login(self, client):
        token = get_auth_token(client, "admin@vitana.com", "SuperAdmin2024!", "super_admin")
        assert token
        me = client.get("/api/auth/me", headers=auth_headers(token))
        assert me.json["user"]["role"] == "super_admin"
        assert me.json["user"]["business_id"] is None

    def test_super_admin_wrong_password(self, client):
        assert get_auth_token(client, "admin@vitana.com", "wrong", "super_admin") is None

    def test_missing_fields(self, client):
        response = client.post("/api/auth/login", json={"email": "a@b.com"})
        assert response.status_code == 400

    def test_invalid_token(self, client):
        response = client.get("/api/auth/me", headers=auth_headers("garbage"))
        assert response.status_code == 401
        assert response.json["error"] == "Invalid token"

    def test_missing_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
