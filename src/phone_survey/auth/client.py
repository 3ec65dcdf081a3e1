"""
REST client for the hosted auth service.

The service speaks the GoTrue protocol (``/auth/v1/...``): password
sign-in, sign-up, sign-out, user lookup, password recovery and user
updates. Every request carries the public ``apikey`` header.
"""

from typing import Any, Protocol

import httpx

from phone_survey.config import Settings, get_settings
from phone_survey.shared.exceptions import AuthenticationError, UpstreamServiceError
from phone_survey.shared.logging import get_logger

logger = get_logger(__name__)


class AuthClientProtocol(Protocol):
    """Protocol for hosted auth service operations."""

    async def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]: ...
    async def sign_up(self, email: str, password: str, name: str | None = None) -> dict[str, Any]: ...
    async def sign_out(self, access_token: str) -> None: ...
    async def get_user(self, access_token: str) -> dict[str, Any]: ...
    async def recover(self, email: str) -> None: ...
    async def update_user(self, access_token: str, attributes: dict[str, Any]) -> dict[str, Any]: ...


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"Auth service returned {response.status_code}"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"Auth service returned {response.status_code}"


class AuthClient:
    """Async client for the hosted auth service."""

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize auth client.

        Args:
            settings: Application settings. Uses default if not provided.
            http_client: HTTP client for making requests. Creates new if not provided.
        """
        self._settings = settings or get_settings()
        self._http_client = http_client
        self._owns_client = http_client is None

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=30.0)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client if owned."""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _url(self, path: str) -> str:
        return f"{self._settings.auth_url.rstrip('/')}/auth/v1{path}"

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self._settings.auth_anon_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        access_token: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Send a request; 4xx answers become ``AuthenticationError``.

        Raises:
            AuthenticationError: The service rejected the credentials or token.
            UpstreamServiceError: Transport failure or 5xx answer.
        """
        client = await self._get_http_client()
        try:
            response = await client.request(
                method,
                self._url(path),
                headers=self._headers(access_token),
                **kwargs,
            )
        except httpx.HTTPError as e:
            logger.error("Auth service request failed", extra={"path": path, "error": str(e)})
            raise UpstreamServiceError("Auth service unavailable", details=str(e)) from e

        if response.status_code >= 500:
            raise UpstreamServiceError("Auth service error", details=_error_message(response))
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(
                "Auth service rejected request",
                extra={"path": path, "status_code": response.status_code, "error": message},
            )
            raise AuthenticationError(message)

        if not response.content:
            return {}
        body = response.json()
        return body if isinstance(body, dict) else {}

    async def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        """Password grant. Returns the session (tokens plus ``user``)."""
        return await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )

    async def sign_up(self, email: str, password: str, name: str | None = None) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password, "data": {"name": name}},
        )

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/logout", access_token=access_token)

    async def get_user(self, access_token: str) -> dict[str, Any]:
        return await self._request("GET", "/user", access_token=access_token)

    async def recover(self, email: str) -> None:
        await self._request("POST", "/recover", json={"email": email})

    async def update_user(self, access_token: str, attributes: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", "/user", access_token=access_token, json=attributes)
