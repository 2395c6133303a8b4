"""Setup tool configuration settings.

SetupSettings is the single configuration object accepted by the setup
session. It is a plain dataclass (not env-coupled) so tests can inject config
without touching os.environ; ``from_env`` is the production factory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


class SettingsError(ValueError):
    """Raised when setup configuration is invalid."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__('invalid configuration: ' + '; '.join(errors))


_TRUE_VALUES = frozenset({'1', 'true', 'yes', 'on'})


@dataclass(frozen=True, slots=True)
class SetupSettings:
    """Configuration for one interactive setup run."""

    # ── Provider endpoints ─────────────────────────────────────────
    github_api_url: str = "https://api.github.com"
    supabase_api_url: str = "https://api.supabase.com"
    vercel_api_url: str = "https://api.vercel.com"

    # ── Database provisioning ──────────────────────────────────────
    supabase_region: str = "ap-south-1"
    supabase_plan: str = "free"
    supabase_organization_id: str = ""
    """Explicit organization; empty means the first one the provider returns."""

    db_password_length: int = 24

    # ── Runtime ────────────────────────────────────────────────────
    http_timeout_seconds: float = 30.0
    output_dir: Path = Path(".")
    skip_tooling: bool = False

    # ── Logging ────────────────────────────────────────────────────
    log_level: str = "WARNING"
    log_format: str = "console"

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        for name in ("github_api_url", "supabase_api_url", "vercel_api_url"):
            value = getattr(self, name)
            if not value.startswith(("https://", "http://")):
                errors.append(f"{name} must be an http(s) URL, got {value!r}")
        if self.db_password_length < 1:
            errors.append("db_password_length must be >= 1")
        if self.http_timeout_seconds <= 0:
            errors.append("http_timeout_seconds must be > 0")
        if not self.supabase_region:
            errors.append("supabase_region is required")
        if self.log_format not in ("console", "json"):
            errors.append(f"log_format must be console or json, got {self.log_format!r}")
        return errors

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> SetupSettings:
        """Build settings from environment variables.

        Raises:
            SettingsError: If a numeric value cannot be parsed.
        """
        if env is None:
            env = dict(os.environ)

        defaults = cls()
        errors: list[str] = []
        password_length = _parse_number(env, "DB_PASSWORD_LENGTH", defaults.db_password_length, int, errors)
        timeout = _parse_number(env, "HTTP_TIMEOUT_SECONDS", defaults.http_timeout_seconds, float, errors)
        if errors:
            raise SettingsError(errors)

        return cls(
            github_api_url=env.get("GITHUB_API_URL", defaults.github_api_url).rstrip("/"),
            supabase_api_url=env.get("SUPABASE_API_URL", defaults.supabase_api_url).rstrip("/"),
            vercel_api_url=env.get("VERCEL_API_URL", defaults.vercel_api_url).rstrip("/"),
            supabase_region=env.get("SUPABASE_REGION", defaults.supabase_region).strip(),
            supabase_plan=env.get("SUPABASE_PLAN", defaults.supabase_plan).strip(),
            supabase_organization_id=env.get("SUPABASE_ORGANIZATION_ID", "").strip(),
            db_password_length=password_length,
            http_timeout_seconds=timeout,
            output_dir=Path(env.get("ONESAAS_OUTPUT_DIR", ".")),
            skip_tooling=env.get("ONESAAS_SKIP_TOOLING", "").strip().lower() in _TRUE_VALUES,
            log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
            log_format=env.get("LOG_FORMAT", defaults.log_format).strip().lower(),
        )


def _parse_number(
    env: dict[str, str],
    key: str,
    default: float,
    kind: type,
    errors: list[str],
):
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return kind(raw)
    except ValueError:
        errors.append(f"{key} must be a number, got {raw!r}")
        return default
