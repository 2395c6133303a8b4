"""Write rendered project documents to disk."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .documents import SECRET_FILES

logger = logging.getLogger(__name__)

# Owner read/write only.
_SECRET_FILE_MODE = 0o600


@dataclass(frozen=True, slots=True)
class WrittenFile:
    path: Path
    ok: bool
    error: str | None = None


def write_documents(
    project_dir: Path,
    documents: Mapping[Path, str],
    *,
    secret_files: frozenset[Path] = SECRET_FILES,
) -> list[WrittenFile]:
    """Write every document; one failed file does not stop the others."""
    written: list[WrittenFile] = []
    for relative, content in documents.items():
        target = project_dir / relative
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding='utf-8')
            if relative in secret_files and os.name == 'posix':
                target.chmod(_SECRET_FILE_MODE)
        except OSError as exc:
            logger.warning('Could not write %s: %s', target, exc)
            written.append(WrittenFile(target, ok=False, error=str(exc)))
            continue
        logger.info('Wrote %s', target)
        written.append(WrittenFile(target, ok=True))
    return written
