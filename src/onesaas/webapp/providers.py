"""Chat provider catalog and upstream request builders.

Each provider maps the common ``[{role, content}]`` message list onto its
own streaming API. The response body is passed through untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from .settings import ChatSettings

ANTHROPIC_VERSION = '2023-06-01'
ANTHROPIC_MAX_TOKENS = 4096


@dataclass(frozen=True, slots=True)
class ChatProvider:
    name: str
    label: str
    model: str
    env_key: str


CHAT_PROVIDERS: dict[str, ChatProvider] = {
    'openai': ChatProvider('openai', 'OpenAI', 'gpt-4o', 'OPENAI_API_KEY'),
    'anthropic': ChatProvider('anthropic', 'Anthropic', 'claude-sonnet-4-20250514', 'ANTHROPIC_API_KEY'),
    'google': ChatProvider('google', 'Google', 'gemini-1.5-pro', 'GOOGLE_GENERATIVE_AI_API_KEY'),
}
FALLBACK_PROVIDER = 'openai'


def resolve_provider(name: str | None, default: str = FALLBACK_PROVIDER) -> ChatProvider:
    """Absent names use ``default``; unknown names fall back to OpenAI."""
    if not name:
        name = default
    return CHAT_PROVIDERS.get(name.strip().lower(), CHAT_PROVIDERS[FALLBACK_PROVIDER])


@dataclass(frozen=True, slots=True)
class UpstreamRequest:
    url: str
    headers: dict[str, str]
    body: dict[str, Any]


def _split_system(messages: Sequence[dict[str, str]]) -> tuple[str, list[dict[str, str]]]:
    system = '\n\n'.join(m['content'] for m in messages if m['role'] == 'system')
    rest = [m for m in messages if m['role'] != 'system']
    return system, rest


def build_upstream_request(
    provider: ChatProvider,
    settings: ChatSettings,
    messages: Sequence[dict[str, str]],
) -> UpstreamRequest:
    base_url = settings.base_url(provider.name)
    api_key = settings.api_key(provider.name)

    if provider.name == 'anthropic':
        system, rest = _split_system(messages)
        body: dict[str, Any] = {
            'model': provider.model,
            'max_tokens': ANTHROPIC_MAX_TOKENS,
            'messages': rest,
            'stream': True,
        }
        if system:
            body['system'] = system
        return UpstreamRequest(
            url=f'{base_url}/messages',
            headers={
                'x-api-key': api_key,
                'anthropic-version': ANTHROPIC_VERSION,
                'Accept': 'text/event-stream',
            },
            body=body,
        )

    if provider.name == 'google':
        system, rest = _split_system(messages)
        body = {
            'contents': [
                {
                    'role': 'model' if m['role'] == 'assistant' else 'user',
                    'parts': [{'text': m['content']}],
                }
                for m in rest
            ],
        }
        if system:
            body['systemInstruction'] = {'parts': [{'text': system}]}
        return UpstreamRequest(
            url=f'{base_url}/models/{provider.model}:streamGenerateContent?alt=sse',
            headers={'x-goog-api-key': api_key, 'Accept': 'text/event-stream'},
            body=body,
        )

    return UpstreamRequest(
        url=f'{base_url}/chat/completions',
        headers={'Authorization': f'Bearer {api_key}', 'Accept': 'text/event-stream'},
        body={'model': provider.model, 'messages': list(messages), 'stream': True},
    )
