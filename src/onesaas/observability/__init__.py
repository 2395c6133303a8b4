"""Logging setup."""

from .logging import configure_logging, get_logger, redact_secrets, redact_text

__all__ = ['configure_logging', 'get_logger', 'redact_secrets', 'redact_text']
