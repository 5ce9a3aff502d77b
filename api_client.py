"""HTTP client used by the Streamlit frontend to talk to the portal API."""

from typing import Any, Dict, Optional

import requests


class ApiError(Exception):
    """Non-2xx response; message is the server's detail, shown to the user as is."""

    def __init__(self, status_code: int, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


def _error_from_response(response) -> ApiError:
    try:
        body = response.json()
    except ValueError:
        return ApiError(response.status_code, response.text or f"HTTP {response.status_code}")
    detail = body.get("detail", body) if isinstance(body, dict) else body
    errors = body.get("errors", []) if isinstance(body, dict) else []
    if isinstance(detail, dict):
        errors = detail.get("errors", errors)
        detail = detail.get("message", str(detail))
    return ApiError(response.status_code, str(detail), errors)


class PortalClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[Any] = None,
        timeout: float = 10,
        verify: bool = True,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout
        self.verify = verify

    def _request(self, method: str, path: str, json: Optional[Dict] = None, params: Optional[Dict] = None):
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        kwargs: Dict[str, Any] = {"headers": headers, "json": json, "params": params, "timeout": self.timeout}
        if isinstance(self.session, requests.Session):
            kwargs["verify"] = self.verify
        response = self.session.request(method, self.base_url + path, **kwargs)
        if response.status_code >= 400:
            raise _error_from_response(response)
        return response.json()

    # ----------------------
    # Auth
    # ----------------------

    def login(self, username: str, password: str, role: str = "customer") -> Dict[str, Any]:
        body = self._request("POST", "/user/login", json={"username": username, "password": password, "role": role})
        self.token = body["token"]
        return body

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/user/me")

    # ----------------------
    # Payments
    # ----------------------

    def create_payment(self, payment: Dict[str, str]) -> Dict[str, Any]:
        return self._request("POST", "/payments/create", json=payment)

    def my_payments(self) -> list:
        return self._request("GET", "/payments/my-payments")["payments"]

    def pending_payments(self) -> list:
        return self._request("GET", "/payments/pending")["payments"]

    def all_payments(self) -> list:
        return self._request("GET", "/payments/all")["payments"]

    def update_status(self, payment_id: str, status: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/payments/{payment_id}/status", json={"status": status})

    def stats(self) -> Dict[str, Any]:
        return self._request("GET", "/payments/stats")

    def test_db(self) -> Dict[str, Any]:
        return self._request("GET", "/payments/test-db")

    def debug_data(self) -> Dict[str, Any]:
        return self._request("GET", "/payments/debug-data")
