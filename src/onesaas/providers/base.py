"""Shared async HTTP plumbing for provider adapters.

Every adapter call is a single attempt: no retries, no backoff. The operator
supervises the run and can re-run it.

Contract:
  - 2xx: the parsed JSON body is returned (``None`` for empty bodies).
  - 4xx/5xx: the provider message is extracted from the body
    (``message``, ``error.message``, ``errors[0].message``), falling back to
    a generic ``HTTP <status>`` message when the body is not parseable.
    401/403 raise ``AuthError``; other statuses raise ``error_cls``.
  - Transport failure (connect error, timeout): ``TransportError`` carrying
    the transport message.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import AuthError, CreationError, ProviderError, TransportError

logger = logging.getLogger(__name__)

# Module-level shared client for connection pooling across adapters.
_shared_async_client: httpx.AsyncClient | None = None


def _get_shared_async_client() -> httpx.AsyncClient:
    global _shared_async_client
    if _shared_async_client is None:
        _shared_async_client = httpx.AsyncClient()
    return _shared_async_client


def _reset_shared_async_client_for_tests() -> None:
    """Test helper: clear shared client cache (does not close the instance)."""
    global _shared_async_client
    _shared_async_client = None


async def close_shared_async_client() -> None:
    global _shared_async_client
    if _shared_async_client is not None:
        await _shared_async_client.aclose()
        _shared_async_client = None


def extract_error_message(resp: httpx.Response) -> str:
    """Best-effort provider error message from a failed response."""
    fallback = f"HTTP {resp.status_code}"
    try:
        payload = resp.json()
    except ValueError:
        return fallback

    if not isinstance(payload, dict):
        return fallback

    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict) and first.get("message"):
            return str(first["message"])

    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error

    message = payload.get("message")
    if message:
        return str(message)
    return fallback


class ProviderHTTP:
    """Bearer-token HTTP access to one provider's REST API."""

    provider = "provider"

    def __init__(
        self,
        *,
        base_url: str,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = http_client or _get_shared_async_client()
        self._timeout = float(timeout_seconds)
        self._token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def _auth_headers(self) -> dict[str, str]:
        # Never log these headers.
        if self._token is None:
            raise AuthError(self.provider, "not authenticated: call authenticate() first")
        return {"Authorization": f"Bearer {self._token}"}

    def _raise_for_status(
        self,
        resp: httpx.Response,
        *,
        error_cls: type[ProviderError] = CreationError,
    ) -> None:
        if resp.status_code < 400:
            return

        message = extract_error_message(resp)
        if resp.status_code in (401, 403):
            raise AuthError(self.provider, message, status_code=resp.status_code)
        raise error_cls(self.provider, message, status_code=resp.status_code)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        params: dict[str, str] | None = None,
        token: str | None = None,
        error_cls: type[ProviderError] = CreationError,
    ) -> Any:
        """Issue one request and return the decoded JSON body."""
        url = f"{self._base_url}{path}"
        headers = {"Authorization": f"Bearer {token}"} if token is not None else self._auth_headers()

        try:
            resp = await self._client.request(
                method,
                url,
                headers=headers,
                json=json,
                params=params,
                timeout=self._timeout,
            )
        except httpx.TransportError as exc:
            logger.warning("%s %s %s transport failure: %s", self.provider, method, path, exc)
            raise TransportError(self.provider, str(exc) or type(exc).__name__) from exc

        self._raise_for_status(resp, error_cls=error_cls)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise error_cls(
                self.provider,
                f"unparseable response from {path}",
                status_code=resp.status_code,
            ) from exc


def require_field(provider: str, payload: Any, key: str) -> Any:
    """Read a required field from a provider response body."""
    if not isinstance(payload, dict) or payload.get(key) in (None, ""):
        raise CreationError(provider, f"response missing {key!r}")
    return payload[key]
