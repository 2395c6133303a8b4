"""Ctrl-C handling of ``onesaas setup``."""
from __future__ import annotations

import asyncio
import os
import re
import select
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest

from onesaas import cli
from onesaas.provisioning import ExitCode

_SRC = Path(__file__).resolve().parents[3] / 'src'
_ANSI = re.compile(r'\x1b\[[0-9;?]*[A-Za-z]')

# Real CLI entry point with the local tools faked, so the run reaches the
# first name prompt without node or git installed.
_CHILD = """
import sys
from onesaas import cli, session
from onesaas.inmemory import FakeCommandRunner
session.SubprocessRunner = FakeCommandRunner
sys.exit(cli.main(['setup', '--skip-tooling']))
"""


def _read_until(fd: int, needle: str, timeout: float) -> str:
    seen = ''
    deadline = time.monotonic() + timeout
    while needle not in _ANSI.sub('', seen):
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise AssertionError(f'{needle!r} not shown; output so far: {seen!r}')
        ready, _, _ = select.select([fd], [], [], remaining)
        if not ready:
            continue
        try:
            chunk = os.read(fd, 4096)
        except OSError:
            break
        if not chunk:
            break
        seen += chunk.decode('utf-8', errors='replace')
    return seen


def test_interruptible_restores_default_sigint_handler():
    async def current_handler():
        return signal.getsignal(signal.SIGINT)

    assert asyncio.run(cli._interruptible(current_handler())) is signal.default_int_handler


@pytest.mark.skipif(sys.platform == 'win32', reason='needs a pty')
def test_single_ctrl_c_at_name_prompt_exits_130(tmp_path):
    import pty

    master, slave = pty.openpty()
    env = dict(os.environ)
    env['PYTHONPATH'] = os.pathsep.join(filter(None, [str(_SRC), env.get('PYTHONPATH')]))
    env['ONESAAS_OUTPUT_DIR'] = str(tmp_path)
    proc = subprocess.Popen(
        [sys.executable, '-c', _CHILD],
        stdin=slave,
        stdout=slave,
        stderr=slave,
        env=env,
        close_fds=True,
    )
    os.close(slave)
    try:
        _read_until(master, 'Parent project name', timeout=30)
        proc.send_signal(signal.SIGINT)
        assert proc.wait(timeout=5) == ExitCode.INTERRUPTED
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()
        os.close(master)
