"""Provider error hierarchy shared by every external adapter.

Adapters raise these; provisioning steps catch ``ProviderError`` at the step
boundary and record the failure as a ``StepOutcome``. The errors carry only
the provider's message, never request headers or tokens.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories a provisioning step can report."""

    AUTH = 'auth'
    NAME_CONFLICT = 'name_conflict'
    CREATION = 'creation'
    CONFIGURATION = 'configuration'
    TRANSPORT = 'transport'


class ProviderError(Exception):
    """Base error for a failed call against an external provider."""

    kind: ErrorKind = ErrorKind.CREATION

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        status_code: int | None = None,
    ) -> None:
        self.provider = provider
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        if self.status_code:
            return f'{self.provider} error {self.status_code}: {self.message}'
        return f'{self.provider} error: {self.message}'

    def __repr__(self) -> str:
        return (
            f'{type(self).__name__}(provider={self.provider!r}, '
            f'message={self.message!r}, status_code={self.status_code!r})'
        )


class AuthError(ProviderError):
    """Credential rejected by the provider (401/403 or bad token)."""

    kind = ErrorKind.AUTH


class NameConflictError(ProviderError):
    """Requested resource name already exists at the provider."""

    kind = ErrorKind.NAME_CONFLICT


class CreationError(ProviderError):
    """Generic provider-side rejection (quota, validation, plan limits)."""

    kind = ErrorKind.CREATION


class ConfigurationError(ProviderError):
    """Setting a single configuration value failed."""

    kind = ErrorKind.CONFIGURATION


class TransportError(ProviderError):
    """Network failure or timeout before the provider answered."""

    kind = ErrorKind.TRANSPORT
