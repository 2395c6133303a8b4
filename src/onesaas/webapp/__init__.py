"""Chat web app served by ``onesaas serve``."""

from .app import ChatMessage, ChatRequest, create_app
from .chat import ChatGateway, ChatGatewayError, ProviderNotConfiguredError, UpstreamError
from .providers import CHAT_PROVIDERS, ChatProvider, resolve_provider
from .settings import ChatSettings

__all__ = [
    'CHAT_PROVIDERS',
    'ChatGateway',
    'ChatGatewayError',
    'ChatMessage',
    'ChatProvider',
    'ChatRequest',
    'ChatSettings',
    'ProviderNotConfiguredError',
    'UpstreamError',
    'create_app',
    'resolve_provider',
]
