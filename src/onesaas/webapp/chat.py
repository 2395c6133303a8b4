"""Streaming gateway to the chat providers.

Opens one streaming request per chat call and forwards the upstream SSE
bytes as they arrive. An idle upstream is closed after
``stream_idle_timeout_seconds`` with a final ``timeout`` event.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator, Sequence

import httpx

from .providers import ChatProvider, build_upstream_request
from .settings import ChatSettings

logger = logging.getLogger(__name__)


class ChatGatewayError(Exception):
    """Base for chat failures reported to the browser as JSON."""

    status_code = 502
    code = "UPSTREAM_ERROR"

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        self.message = message
        super().__init__(f"{provider}: {message}")


class ProviderNotConfiguredError(ChatGatewayError):
    status_code = 503
    code = "PROVIDER_NOT_CONFIGURED"


class UpstreamError(ChatGatewayError):
    def __init__(self, provider: str, message: str, *, upstream_status: int | None = None) -> None:
        super().__init__(provider, message)
        self.upstream_status = upstream_status


async def stream_sse_events(
    upstream_response: httpx.Response,
    *,
    provider: str,
    idle_timeout_sec: float,
) -> AsyncGenerator[bytes, None]:
    """Yield SSE bytes from an upstream streaming response, then close it."""
    try:
        aiter = upstream_response.aiter_bytes().__aiter__()
        while True:
            try:
                chunk = await asyncio.wait_for(aiter.__anext__(), timeout=idle_timeout_sec)
            except asyncio.TimeoutError:
                logger.info("Chat stream idle timeout after %.1fs (%s)", idle_timeout_sec, provider)
                yield b"event: timeout\ndata: {\"reason\": \"idle_timeout\"}\n\n"
                return
            except StopAsyncIteration:
                break
            yield chunk
    except httpx.ReadError:
        logger.info("Chat upstream read error (%s)", provider)
    except httpx.HTTPError as exc:
        logger.warning("Chat stream error (%s): %s", provider, exc)
        yield f"event: error\ndata: {{\"reason\": \"{type(exc).__name__}\"}}\n\n".encode()
    finally:
        await upstream_response.aclose()


class ChatGateway:
    def __init__(self, settings: ChatSettings, http_client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._client = http_client

    @property
    def settings(self) -> ChatSettings:
        return self._settings

    async def open_stream(
        self,
        provider: ChatProvider,
        messages: Sequence[dict[str, str]],
    ) -> httpx.Response:
        """Start the upstream request and return the open streaming response.

        Raises:
            ProviderNotConfiguredError: No API key for ``provider``.
            UpstreamError: Connection failure or non-200 upstream status.
        """
        if not self._settings.api_key(provider.name):
            raise ProviderNotConfiguredError(
                provider.name, f"{provider.env_key} is not set",
            )

        upstream = build_upstream_request(provider, self._settings, messages)
        request = self._client.build_request(
            "POST",
            upstream.url,
            headers=upstream.headers,
            json=upstream.body,
            timeout=self._settings.request_timeout_seconds,
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            logger.warning("Chat upstream unavailable (%s): %s", provider.name, type(exc).__name__)
            raise UpstreamError(provider.name, "upstream unavailable") from exc

        if response.status_code != 200:
            await response.aread()
            await response.aclose()
            logger.warning("Chat upstream %s returned %d", provider.name, response.status_code)
            raise UpstreamError(
                provider.name,
                f"upstream returned {response.status_code}",
                upstream_status=response.status_code,
            )
        return response

    def stream(self, response: httpx.Response, provider: ChatProvider) -> AsyncGenerator[bytes, None]:
        return stream_sse_events(
            response,
            provider=provider.name,
            idle_timeout_sec=self._settings.stream_idle_timeout_seconds,
        )
