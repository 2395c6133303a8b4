"""GitHub adapter: token check and repository creation.

Uses a fine-grained personal access token with Contents read/write on all
repositories.
"""

from __future__ import annotations

import logging

import httpx

from ..errors import AuthError, CreationError, NameConflictError
from ..protocols import AccountIdentity, RepositoryHandle
from .base import ProviderHTTP, require_field

logger = logging.getLogger(__name__)

_NAME_CONFLICT_MARKER = "name already exists"


class GitHubClient(ProviderHTTP):
    """Async client for the GitHub REST API (RepositoryHost)."""

    provider = "github"

    def __init__(
        self,
        *,
        base_url: str = "https://api.github.com",
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        super().__init__(
            base_url=base_url,
            http_client=http_client,
            timeout_seconds=timeout_seconds,
        )
        self._login: str | None = None

    async def authenticate(self, token: str) -> AccountIdentity:
        """Validate the token via ``GET /user`` and keep it for later calls."""
        if not token:
            raise AuthError(self.provider, "token is required")
        payload = await self._request("GET", "/user", token=token, error_cls=AuthError)
        login = require_field(self.provider, payload, "login")

        self._token = token
        self._login = login
        return AccountIdentity(
            provider=self.provider,
            account=login,
            display_name=payload.get("name") or login,
            account_id=str(payload.get("id", "")),
        )

    async def create_repository(self, name: str, *, private: bool = True) -> RepositoryHandle:
        """Create ``name`` under the authenticated account.

        Raises:
            NameConflictError: A repository with this name already exists.
            CreationError: Any other provider-side rejection.
        """
        body = {
            "name": name,
            "description": f"{name} - Created with OneSaaS",
            "private": private,
            "auto_init": False,
        }
        try:
            payload = await self._request("POST", "/user/repos", json=body)
        except CreationError as exc:
            if _NAME_CONFLICT_MARKER in exc.message.lower():
                raise NameConflictError(
                    self.provider,
                    f"repository {name!r} already exists",
                    status_code=exc.status_code,
                ) from exc
            raise

        url = require_field(self.provider, payload, "html_url")
        clone_url = require_field(self.provider, payload, "clone_url")
        logger.info("Repository created: name=%s private=%s", name, private)
        return RepositoryHandle(
            name=payload.get("name", name),
            url=url,
            clone_url=clone_url,
            private=bool(payload.get("private", private)),
        )
