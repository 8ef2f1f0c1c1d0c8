"""
Async HTTP client for the User Registry API
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from user_registry.config.settings import API_BASE_URL

logger = logging.getLogger(__name__)

UNEXPECTED_RESPONSE = "Respuesta inesperada del servidor"


class ApiClientError(Exception):
    """The API answered with a failure status or a body it could not read"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UsersApiClient:
    """Thin wrapper over the /api endpoints used by the dashboard"""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "UsersApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def health(self) -> bool:
        response = await self._client.get("/health")
        return response.is_success

    async def db_status(self) -> bool:
        response = await self._client.get("/db-status")
        return response.is_success

    async def list_users(self) -> List[Dict[str, Any]]:
        response = await self._client.get("/users")
        if not response.is_success:
            raise ApiClientError(f"HTTP error! status: {response.status_code}", response.status_code)
        users = self._payload(response, UNEXPECTED_RESPONSE)
        if not isinstance(users, list):
            raise ApiClientError(UNEXPECTED_RESPONSE, response.status_code)
        return users

    async def create_user(self, nombre: str, email: str, telefono: str) -> Dict[str, Any]:
        response = await self._client.post(
            "/users",
            json={"nombre": nombre, "email": email, "telefono": telefono},
        )
        if not response.is_success:
            raise ApiClientError(
                self._error_message(response, "Error al agregar usuario"), response.status_code
            )
        return self._payload(response, UNEXPECTED_RESPONSE, key="user")

    async def delete_user(self, user_id: int) -> Dict[str, Any]:
        response = await self._client.delete(f"/users/{user_id}")
        if not response.is_success:
            raise ApiClientError(
                self._error_message(response, "Error al eliminar usuario"), response.status_code
            )
        return self._payload(response, UNEXPECTED_RESPONSE, key="deletedUser")

    @staticmethod
    def _payload(response: httpx.Response, message: str, key: Optional[str] = None) -> Any:
        """Decode a successful response, raising ApiClientError when the body is not the expected JSON"""
        try:
            body = response.json()
        except ValueError:
            raise ApiClientError(message, response.status_code)
        if key is None:
            return body
        if not isinstance(body, dict) or key not in body:
            raise ApiClientError(message, response.status_code)
        return body[key]

    @staticmethod
    def _error_message(response: httpx.Response, default: str) -> str:
        """Prefer the server's error text, falling back when the body is not JSON"""
        try:
            body = response.json()
        except ValueError:
            return default
        if isinstance(body, dict) and body.get("error"):
            return body["error"]
        return default
