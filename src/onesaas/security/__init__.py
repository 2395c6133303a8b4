"""Secret handling helpers."""

from .passwords import DEFAULT_PASSWORD_LENGTH, PASSWORD_ALPHABET, generate_password

__all__ = [
    'DEFAULT_PASSWORD_LENGTH',
    'PASSWORD_ALPHABET',
    'generate_password',
]
