"""Subprocess-backed command runner."""

from __future__ import annotations

import shutil
import subprocess
from typing import Sequence

from ..protocols import CommandResult

COMMAND_NOT_FOUND = 127


class SubprocessRunner:
    """Runs local commands with a timeout.

    A missing executable is reported as return code 127 and a timeout as
    124 (coreutils ``timeout`` conventions) instead of raising.
    """

    def __init__(self, *, timeout_seconds: float = 300.0) -> None:
        self._timeout = timeout_seconds

    def which(self, command: str) -> str | None:
        return shutil.which(command)

    def run(self, args: Sequence[str], *, capture: bool = True) -> CommandResult:
        try:
            result = subprocess.run(
                list(args),
                capture_output=capture,
                text=True,
                timeout=self._timeout,
            )
        except FileNotFoundError:
            return CommandResult(COMMAND_NOT_FOUND, stderr=f'command not found: {args[0]}')
        except subprocess.TimeoutExpired:
            return CommandResult(124, stderr=f'timed out after {self._timeout:g}s')
        return CommandResult(
            result.returncode,
            stdout=result.stdout or '',
            stderr=result.stderr or '',
        )
