"""Structured logging configuration for onesaas.

Configures structlog on top of stdlib logging so module loggers created
with ``logging.getLogger(__name__)`` share one renderer. Output goes to
stderr: stdout belongs to the interactive prompts.

Every record passes through ``redact_secrets`` before rendering. Tokens,
passwords and the password inside a postgres URL never reach a log line.

Usage::

    from onesaas.observability.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_output=False)
    logger = get_logger()
    logger.info("step_started", step="repository")
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

import structlog

REDACTED = "[REDACTED]"

_SECRET_KEY_RE = re.compile(r"(token|password|passwd|secret|api_key|authorization)", re.IGNORECASE)
_BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE)
_PG_URL_PASSWORD_RE = re.compile(r"(postgres(?:ql)?://[^:/@\s]+:)[^@\s]+(@)")
_ASSIGNMENT_RE = re.compile(
    r"((?:token|password|api_key|secret)[\"']?\s*[=:]\s*[\"']?)[^\s\"',}]+",
    re.IGNORECASE,
)

_configured = False


def redact_text(text: str) -> str:
    """Mask secrets embedded in free text."""
    text = _BEARER_RE.sub(rf"\1{REDACTED}", text)
    text = _PG_URL_PASSWORD_RE.sub(rf"\1{REDACTED}\2", text)
    return _ASSIGNMENT_RE.sub(rf"\1{REDACTED}", text)


def redact_secrets(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog processor: mask secret-looking keys and values."""
    for key, value in list(event_dict.items()):
        if key != "event" and _SECRET_KEY_RE.search(key) and value:
            event_dict[key] = REDACTED
        elif isinstance(value, str):
            event_dict[key] = redact_text(value)
    return event_dict


def configure_logging(
    *,
    level: str = "WARNING",
    json_output: bool = False,
    force: bool = False,
) -> None:
    """Configure structlog and stdlib logging.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Emit JSON lines instead of human-readable output.
        force: Reconfigure even if logging was already configured.
    """
    global _configured
    if _configured and not force:
        return
    _configured = True

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            redact_secrets,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    # Quiet noisy libraries.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the given name."""
    return structlog.get_logger(name)
