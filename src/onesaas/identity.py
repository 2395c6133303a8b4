"""Project naming contract.

The parent (organization/group) and sub-project names typed by the operator
are normalized once into URL/DNS-safe tokens:

  - lowercase
  - every whitespace run becomes a single ``-``
  - any character outside ``[a-z0-9-]`` is dropped

The resource name used for the repository, the database project and the
deployment target is ``{parent}-{sub}``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_WHITESPACE_RE = re.compile(r'\s+')
_UNSAFE_RE = re.compile(r'[^a-z0-9-]')


@dataclass(frozen=True, slots=True)
class ProjectIdentity:
    """Normalized names for one provisioning run."""

    parent_name: str
    sub_name: str

    @property
    def resource_name(self) -> str:
        return f'{self.parent_name}-{self.sub_name}'

    @property
    def display_path(self) -> str:
        return f'{self.parent_name}/{self.sub_name}'


def normalize_resource_name(raw: str) -> str:
    """Normalize a user-supplied name into a resource-safe token."""
    lowered = raw.lower()
    hyphenated = _WHITESPACE_RE.sub('-', lowered)
    return _UNSAFE_RE.sub('', hyphenated)


def build_identity(parent: str, sub: str) -> ProjectIdentity:
    """Build the run identity from raw parent/sub project names.

    Raises:
        ValueError: If either name is empty after normalization.
    """
    parent_name = normalize_resource_name(parent.strip())
    if not parent_name:
        raise ValueError('parent project name must contain at least one [a-z0-9-] character')
    sub_name = normalize_resource_name(sub.strip())
    if not sub_name:
        raise ValueError('sub project name must contain at least one [a-z0-9-] character')
    return ProjectIdentity(parent_name=parent_name, sub_name=sub_name)
