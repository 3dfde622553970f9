"""
Thin HTTP client for the gallery API.

Every call returns the decoded JSON envelope (or its ``data`` member) and turns
any non-2xx answer into ``ApiError`` carrying the server's message verbatim.
A 401 on a request that carried a token raises ``SessionEndedError`` so the
caller can drop the session.
"""
import logging
from typing import Any, Optional

import httpx

from client.config import API_BASE_URL
from client.tokens import MemoryTokenStore, TokenStore

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, errors: Optional[list] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []


class SessionEndedError(ApiError):
    """The server rejected the stored token (invalid, expired or revoked)."""


class ApiService:
    def __init__(
        self,
        base_url: str = API_BASE_URL,
        token_store: Optional[TokenStore] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store if token_store is not None else MemoryTokenStore()
        self._client = http_client or httpx.Client()

    def close(self) -> None:
        self._client.close()

    def request(self, method: str, endpoint: str, **kwargs) -> dict:
        url = f"{self.base_url}{endpoint}"
        headers = kwargs.pop("headers", {})
        token = self.token_store.get()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("API request failed: %s %s: %s", method, endpoint, e)
            raise ApiError(f"Network error: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if response.is_error:
            message = body.get("message") or "Request failed"
            if response.status_code == 401 and token:
                raise SessionEndedError(message, response.status_code, body.get("errors"))
            raise ApiError(message, response.status_code, body.get("errors"))
        return body

    # --- auth ---------------------------------------------------------------
    def login(self, email: str, password: str) -> dict:
        return self.request("POST", "/auth/login", json={"email": email, "password": password})["data"]

    def register(self, email: str, password: str, confirm_password: str, name: Optional[str] = None) -> dict:
        payload = {"email": email, "password": password, "confirmPassword": confirm_password}
        if name:
            payload["name"] = name
        return self.request("POST", "/auth/register", json=payload)["data"]

    def verify_token(self, token: str) -> dict:
        return self.request("POST", "/auth/verify-token", json={"token": token})["data"]

    def current_user(self) -> dict:
        return self.request("GET", "/auth/me")["data"]["user"]

    def logout(self) -> dict:
        return self.request("POST", "/auth/logout")

    # --- projects -----------------------------------------------------------
    def list_projects(
        self,
        page: int = 1,
        limit: int = 10,
        category: Optional[str] = None,
        status: str = "published",
        search: Optional[str] = None,
    ) -> dict:
        params: dict[str, Any] = {"page": page, "limit": limit, "status": status}
        if category:
            params["category"] = category
        if search:
            params["search"] = search
        return self.request("GET", "/projects", params=params)

    def my_projects(self, page: int = 1, limit: int = 10) -> dict:
        return self.request("GET", "/projects/mine", params={"page": page, "limit": limit})

    def get_project(self, project_id: str) -> dict:
        return self.request("GET", f"/projects/{project_id}")["data"]

    def create_project(self, data: dict, files: Optional[dict] = None) -> dict:
        return self.request("POST", "/projects", data=data, files=files or None)["data"]

    def update_project(self, project_id: str, data: dict, files: Optional[dict] = None) -> dict:
        return self.request("PUT", f"/projects/{project_id}", data=data, files=files or None)["data"]

    def delete_project(self, project_id: str) -> str:
        return self.request("DELETE", f"/projects/{project_id}")["message"]

    def categories(self) -> list[str]:
        return self.request("GET", "/projects/meta/categories")["data"]

    def health(self) -> dict:
        return self.request("GET", "/health")
