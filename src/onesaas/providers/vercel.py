"""Vercel adapter: projects, environment variables and custom domains.

Implements both DeploymentHost and DomainRegistrar; the domain calls reuse
the token stored by ``authenticate``.
"""

from __future__ import annotations

import logging
import re

import httpx

from ..errors import AuthError, ConfigurationError, CreationError
from ..protocols import (
    AccountIdentity,
    DeploymentHandle,
    DomainAvailability,
    DomainPrice,
)
from .base import ProviderHTTP, require_field

logger = logging.getLogger(__name__)

_PROJECT_NAME_RE = re.compile(r"[^a-z0-9-]")

ENV_TARGETS = ("production", "preview", "development")


def slugify_project_name(name: str) -> str:
    """Map a name onto Vercel's project/subdomain convention."""
    return _PROJECT_NAME_RE.sub("-", name.lower())


def deploy_url_for(project_name: str) -> str:
    return f"https://{project_name}.vercel.app"


class VercelClient(ProviderHTTP):
    """Async client for ``api.vercel.com``."""

    provider = "vercel"

    def __init__(
        self,
        *,
        base_url: str = "https://api.vercel.com",
        framework: str = "nextjs",
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        super().__init__(
            base_url=base_url,
            http_client=http_client,
            timeout_seconds=timeout_seconds,
        )
        self._framework = framework

    async def authenticate(self, token: str) -> AccountIdentity:
        if not token:
            raise AuthError(self.provider, "token is required")
        payload = await self._request("GET", "/v2/user", token=token, error_cls=AuthError)
        user = payload.get("user") if isinstance(payload, dict) else None
        if not isinstance(user, dict) or not user.get("username"):
            raise AuthError(self.provider, "unexpected user response")

        self._token = token
        return AccountIdentity(
            provider=self.provider,
            account=user["username"],
            display_name=user.get("name") or user["username"],
            account_id=str(user.get("id", "")),
        )

    # ── DeploymentHost ───────────────────────────────────────────

    async def create_deployment(self, name: str, *, repository: str) -> DeploymentHandle:
        """Create a project linked to the GitHub ``repository`` (``owner/name``)."""
        body = {
            "name": slugify_project_name(name),
            "framework": self._framework,
            "gitRepository": {"type": "github", "repo": repository},
        }
        payload = await self._request("POST", "/v10/projects", json=body)
        project_id = str(require_field(self.provider, payload, "id"))
        project_name = str(require_field(self.provider, payload, "name"))

        logger.info("Deployment project created: name=%s project_id=%s", project_name, project_id)
        return DeploymentHandle(
            project_id=project_id,
            name=project_name,
            deploy_url=deploy_url_for(project_name),
            dashboard_url=f"https://vercel.com/{payload.get('accountId', '')}/{project_name}",
        )

    async def set_environment_variable(self, project_id: str, key: str, value: str) -> None:
        """Store an encrypted env var for all targets.

        Raises:
            ConfigurationError: The provider rejected the value.
        """
        body = {
            "key": key,
            "value": value,
            "type": "encrypted",
            "target": list(ENV_TARGETS),
        }
        await self._request(
            "POST",
            f"/v10/projects/{project_id}/env",
            json=body,
            error_cls=ConfigurationError,
        )
        logger.info("Environment variable set: project_id=%s key=%s", project_id, key)

    # ── DomainRegistrar ──────────────────────────────────────────

    async def check_domain(self, domain: str) -> DomainAvailability:
        payload = await self._request(
            "GET", "/v4/domains/status", params={"name": domain},
        )
        if not isinstance(payload, dict) or "available" not in payload:
            raise CreationError(self.provider, "failed to check domain")
        return DomainAvailability(name=domain, available=bool(payload["available"]))

    async def get_domain_price(self, domain: str) -> DomainPrice:
        payload = await self._request(
            "GET", "/v4/domains/price", params={"name": domain},
        )
        price = require_field(self.provider, payload, "price")
        try:
            return DomainPrice(
                name=domain,
                price=float(price),
                period=int(payload.get("period") or 1),
            )
        except (TypeError, ValueError):
            raise CreationError(self.provider, "unparseable domain price") from None

    async def purchase_domain(self, domain: str) -> None:
        await self._request("POST", "/v5/domains/buy", json={"name": domain})
        logger.info("Domain purchased: domain=%s", domain)

    async def attach_domain(self, project_id: str, domain: str) -> None:
        await self._request(
            "POST",
            f"/v10/projects/{project_id}/domains",
            json={"name": domain},
        )
        logger.info("Domain attached: project_id=%s domain=%s", project_id, domain)
