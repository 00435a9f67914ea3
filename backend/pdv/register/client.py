# Overview: HTTP client the register uses to talk to the PDV API.

from __future__ import annotations

from typing import Optional

import httpx

from ..services.tenant_service import BUSINESS_HEADER


class ApiError(Exception):
    """Non-2xx answer (or transport failure, status 0) from the API."""

    def __init__(self, status_code: int, message: str, payload: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}


class PDVClient:
    """
    Thin wrapper over httpx.Client.

    `transport` lets tests drive the Flask app in-process
    (httpx.WSGITransport(app=app)).
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:3001",
        token: Optional[str] = None,
        business_id: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 10.0,
    ):
        self._http = httpx.Client(base_url=base_url, transport=transport, timeout=timeout)
        self.token = token
        self.business_id = business_id

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "PDVClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _headers(self) -> dict:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.business_id:
            headers[BUSINESS_HEADER] = self.business_id
        return headers

    def _request(self, method: str, path: str, **kwargs):
        try:
            response = self._http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(0, f"Could not reach server: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            payload = body if isinstance(body, dict) else {}
            message = payload.get("error") or response.reason_phrase or "Request failed"
            raise ApiError(response.status_code, message, payload)
        return body

    def login(self, email: str, password: str, role: str) -> dict:
        """Store the token for later calls and return the user claims."""
        data = self._request("POST", "/api/auth/login", json={
            "email": email,
            "password": password,
            "role": role,
        })
        self.token = data["token"]
        return data["user"]

    def list_products(self, search: Optional[str] = None, low_stock: bool = False) -> list[dict]:
        params = {}
        if search:
            params["search"] = search
        if low_stock:
            params["lowStock"] = "true"
        return self._request("GET", "/api/products", params=params)

    def find_by_barcode(self, barcode: str) -> Optional[dict]:
        """Product dict, or None when no product has this barcode."""
        try:
            return self._request("GET", f"/api/products/barcode/{barcode}")
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise

    def create_sale(self, payload: dict) -> dict:
        return self._request("POST", "/api/sales", json=payload)

    def list_sales(self, **filters) -> list[dict]:
        params = {key: value for key, value in filters.items() if value is not None}
        return self._request("GET", "/api/sales", params=params)
