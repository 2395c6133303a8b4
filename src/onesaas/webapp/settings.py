"""Chat web app settings."""

from __future__ import annotations

import os
from dataclasses import dataclass

CHAT_PROVIDER_NAMES = ('openai', 'anthropic', 'google')


@dataclass(frozen=True, slots=True)
class ChatSettings:
    """Provider keys and upstream endpoints for the chat route.

    A missing key disables its provider; requests for it get a 503.
    """

    openai_api_key: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = ""
    default_provider: str = "openai"

    openai_base_url: str = "https://api.openai.com/v1"
    anthropic_base_url: str = "https://api.anthropic.com/v1"
    google_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    request_timeout_seconds: float = 30.0
    stream_idle_timeout_seconds: float = 300.0

    def api_key(self, provider: str) -> str:
        return {
            'openai': self.openai_api_key,
            'anthropic': self.anthropic_api_key,
            'google': self.google_api_key,
        }.get(provider, "")

    def base_url(self, provider: str) -> str:
        return {
            'openai': self.openai_base_url,
            'anthropic': self.anthropic_base_url,
            'google': self.google_base_url,
        }[provider].rstrip('/')

    def validate(self) -> list[str]:
        errors: list[str] = []
        if self.default_provider not in CHAT_PROVIDER_NAMES:
            errors.append(
                f"default_provider must be one of {', '.join(CHAT_PROVIDER_NAMES)}, "
                f"got {self.default_provider!r}"
            )
        if self.stream_idle_timeout_seconds <= 0:
            errors.append("stream_idle_timeout_seconds must be > 0")
        return errors

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> ChatSettings:
        env = dict(os.environ) if env is None else env
        defaults = cls()
        return cls(
            openai_api_key=env.get("OPENAI_API_KEY", ""),
            anthropic_api_key=env.get("ANTHROPIC_API_KEY", ""),
            google_api_key=env.get("GOOGLE_GENERATIVE_AI_API_KEY", ""),
            default_provider=env.get("CHAT_DEFAULT_PROVIDER", defaults.default_provider).strip().lower()
            or defaults.default_provider,
            openai_base_url=env.get("OPENAI_BASE_URL", defaults.openai_base_url),
            anthropic_base_url=env.get("ANTHROPIC_BASE_URL", defaults.anthropic_base_url),
            google_base_url=env.get("GOOGLE_BASE_URL", defaults.google_base_url),
        )
