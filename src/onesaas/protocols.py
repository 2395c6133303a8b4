"""Capability protocol interfaces for dependency injection.

These protocols define the contracts that concrete adapters (httpx clients
for the real providers, InMemory fakes for tests) must satisfy. The
provisioning workflow accepts any implementation matching them.

Every adapter owns its own token: ``authenticate`` stores it and later calls
use it. Failures are raised as ``onesaas.errors.ProviderError`` subclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, runtime_checkable


@dataclass(frozen=True, slots=True)
class AccountIdentity:
    """Who a provider token belongs to."""

    provider: str
    account: str
    display_name: str = ''
    account_id: str = ''


@dataclass(frozen=True, slots=True)
class RepositoryHandle:
    name: str
    url: str
    clone_url: str
    private: bool


@dataclass(frozen=True, slots=True)
class DatabaseHandle:
    project_id: str
    organization_id: str
    database_url: str
    dashboard_url: str


@dataclass(frozen=True, slots=True)
class DeploymentHandle:
    project_id: str
    name: str
    deploy_url: str
    dashboard_url: str


@dataclass(frozen=True, slots=True)
class DomainAvailability:
    name: str
    available: bool


@dataclass(frozen=True, slots=True)
class DomainPrice:
    name: str
    price: float
    period: int = 1


@runtime_checkable
class RepositoryHost(Protocol):
    """Version-control hosting (GitHub)."""

    async def authenticate(self, token: str) -> AccountIdentity: ...
    async def create_repository(self, name: str, *, private: bool = True) -> RepositoryHandle: ...


@runtime_checkable
class DatabaseHost(Protocol):
    """Managed database hosting (Supabase)."""

    async def authenticate(self, token: str) -> AccountIdentity: ...
    async def create_database(
        self, name: str, *, organization_id: str, password: str,
    ) -> DatabaseHandle: ...


@runtime_checkable
class DeploymentHost(Protocol):
    """Deployment platform (Vercel)."""

    async def authenticate(self, token: str) -> AccountIdentity: ...
    async def create_deployment(
        self, name: str, *, repository: str,
    ) -> DeploymentHandle: ...
    async def set_environment_variable(
        self, project_id: str, key: str, value: str,
    ) -> None: ...


@runtime_checkable
class DomainRegistrar(Protocol):
    """Custom domain purchase and attachment (Vercel domains)."""

    async def check_domain(self, domain: str) -> DomainAvailability: ...
    async def get_domain_price(self, domain: str) -> DomainPrice: ...
    async def purchase_domain(self, domain: str) -> None: ...
    async def attach_domain(self, project_id: str, domain: str) -> None: ...


@runtime_checkable
class Console(Protocol):
    """Terminal interaction surface used by the session and the steps."""

    def banner(self) -> None: ...
    def step(self, current: int, total: int, description: str) -> None: ...
    def info(self, message: str) -> None: ...
    def success(self, message: str) -> None: ...
    def warn(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
    def dim(self, message: str) -> None: ...
    def heading(self, message: str) -> None: ...
    def ask(self, prompt: str) -> str: ...
    def ask_secret(self, prompt: str) -> str: ...
    def confirm(self, prompt: str) -> bool: ...


@dataclass(frozen=True, slots=True)
class CommandResult:
    returncode: int
    stdout: str = ''
    stderr: str = ''

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@runtime_checkable
class CommandRunner(Protocol):
    """Local command execution used by tooling checks and installs."""

    def which(self, command: str) -> str | None: ...
    def run(self, args: Sequence[str], *, capture: bool = True) -> CommandResult: ...
