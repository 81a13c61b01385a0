# Overview: HTTP client for the Cherry POS API, with bearer auth helpers.

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx


logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Unable to reach the server"


class ApiError(Exception):
    """
    A failed API call.

    status is the HTTP status code, or None when the request never got a
    response (connection refused, timeout).
    """

    def __init__(self, status: Optional[int], message: str, body: Optional[dict] = None):
        self.status = status
        self.message = message
        self.body = body or {}
        super().__init__(message)

    @property
    def is_transport_error(self) -> bool:
        return self.status is None

    @property
    def is_auth_error(self) -> bool:
        return self.status == 401


def error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"Request failed with status {response.status_code}"


class ApiClient:
    """
    Thin wrapper over httpx.Client.

    Every call returns the decoded JSON body or raises ApiError. The token used
    for a call is passed explicitly; the client itself holds none, because an
    administrator token and a staff token can be live at the same time.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def _headers(self, token: Optional[str] = None, extra: Optional[Dict] = None) -> Dict:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        json: Optional[Dict] = None,
        params: Optional[Dict] = None,
    ) -> Any:
        try:
            response = self.client.request(
                method,
                path,
                headers=self._headers(token),
                json=json,
                params=params,
            )
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(None, NETWORK_ERROR_MESSAGE) from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            raise ApiError(
                response.status_code,
                error_message(response),
                body if isinstance(body, dict) else None,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(response.status_code, "Invalid response from server") from e

    def get(self, path: str, *, token: Optional[str] = None, params: Optional[Dict] = None) -> Any:
        return self.request("GET", path, token=token, params=params)

    def post(self, path: str, json: Optional[Dict] = None, *, token: Optional[str] = None) -> Any:
        return self.request("POST", path, token=token, json=json or {})

    def patch(self, path: str, json: Optional[Dict] = None, *, token: Optional[str] = None) -> Any:
        return self.request("PATCH", path, token=token, json=json or {})

    def delete(self, path: str, *, token: Optional[str] = None, json: Optional[Dict] = None) -> Any:
        return self.request("DELETE", path, token=token, json=json)

    # -- Endpoints used by the session providers and notifiers --

    def login(self, email: str, password: str) -> dict:
        return self.post("/api/auth/login", {"email": email, "password": password})

    def signup(self, email: str, password: str, full_name: Optional[str] = None) -> dict:
        return self.post("/api/auth/signup", {"email": email, "password": password, "full_name": full_name})

    def refresh(self, refresh_token: str) -> dict:
        return self.post("/api/auth/refresh", {"refresh_token": refresh_token})

    def me(self, token: str) -> dict:
        return self.get("/api/auth/me", token=token)

    def logout(self, token: str) -> dict:
        return self.post("/api/auth/logout", token=token)

    def staff_login(self, username: str, password: str) -> dict:
        return self.post("/api/auth/staff/login", {"username": username, "password": password})

    def navigation(self, token: str) -> dict:
        return self.get("/api/navigation", token=token)

    def my_assignment(self, token: str) -> Optional[dict]:
        return self.get("/api/assignments/me", token=token).get("assignment")

    def get_transfer(self, transfer_id: int, token: str) -> dict:
        return self.get(f"/api/transfers/{transfer_id}", token=token)["transfer"]

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
