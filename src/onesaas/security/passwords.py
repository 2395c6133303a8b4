"""Random secret generation for provisioned resources."""

from __future__ import annotations

import secrets
import string

PASSWORD_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
DEFAULT_PASSWORD_LENGTH = 24


def generate_password(length: int = DEFAULT_PASSWORD_LENGTH) -> str:
    """Return ``length`` symbols drawn uniformly from ``[A-Za-z0-9]``.

    Uses the ``secrets`` CSPRNG.
    """
    if length < 1:
        raise ValueError('length must be >= 1')
    return ''.join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))
