"""FastAPI application factory for the chat web app.

Routes:
  - ``GET /``: static chat page.
  - ``GET /health``: liveness probe.
  - ``POST /api/chat``: streams the selected provider's SSE response.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Literal

import httpx
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from .chat import ChatGateway, ChatGatewayError
from .providers import resolve_provider
from .settings import ChatSettings

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1)
    provider: str | None = None


def create_chat_router() -> APIRouter:
    router = APIRouter(tags=["chat"])

    @router.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse((STATIC_DIR / "index.html").read_text(encoding="utf-8"))

    @router.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @router.post("/api/chat", response_model=None)
    async def chat(body: ChatRequest, request: Request) -> StreamingResponse | JSONResponse:
        gateway: ChatGateway = request.app.state.chat_gateway
        provider = resolve_provider(body.provider, gateway.settings.default_provider)
        messages = [m.model_dump() for m in body.messages]

        try:
            upstream = await gateway.open_stream(provider, messages)
        except ChatGatewayError as exc:
            return JSONResponse(
                status_code=exc.status_code,
                content={"code": exc.code, "provider": exc.provider, "message": exc.message},
            )

        logger.info("Chat stream open: provider=%s messages=%d", provider.name, len(messages))

        async def event_generator() -> AsyncGenerator[bytes, None]:
            async for chunk in gateway.stream(upstream, provider):
                yield chunk

        return StreamingResponse(
            event_generator(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Chat-Provider": provider.name,
            },
        )

    return router


def create_app(
    settings: ChatSettings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create the chat web app.

    Args:
        settings: Chat settings. Defaults to ``ChatSettings.from_env()``.
        http_client: Upstream client override. When None, one client is
            opened at startup and closed at shutdown.

    Raises:
        ValueError: If settings validation fails.
    """
    if settings is None:
        settings = ChatSettings.from_env()

    errors = settings.validate()
    if errors:
        raise ValueError(
            "Chat settings validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = http_client is None
        client = http_client or httpx.AsyncClient()
        app.state.chat_gateway = ChatGateway(settings, client)
        try:
            yield
        finally:
            if owned:
                await client.aclose()

    app = FastAPI(title="OneSaaS", lifespan=lifespan)
    app.state.settings = settings
    if http_client is not None:
        app.state.chat_gateway = ChatGateway(settings, http_client)
    app.include_router(create_chat_router())
    return app
