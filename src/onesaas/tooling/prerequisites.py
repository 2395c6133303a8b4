"""Pre-flight check for local tools.

``node`` and ``git`` are required; ``pnpm`` is recommended. Missing tools are
reported with an install hint for the current platform.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Literal

from ..protocols import CommandRunner, Console

Platform = Literal['mac', 'windows', 'linux']


@dataclass(frozen=True, slots=True)
class ToolRequirement:
    command: str
    label: str
    required: bool


REQUIREMENTS = (
    ToolRequirement('node', 'Node.js', required=True),
    ToolRequirement('git', 'Git', required=True),
    ToolRequirement('pnpm', 'pnpm', required=False),
)

INSTALL_GUIDES: dict[str, dict[Platform, str]] = {
    'node': {
        'mac': 'brew install node  or  https://nodejs.org',
        'windows': 'Download from https://nodejs.org',
        'linux': 'curl -fsSL https://deb.nodesource.com/setup_20.x | sudo -E bash - && sudo apt-get install -y nodejs',
    },
    'git': {
        'mac': 'brew install git  or  install the Xcode Command Line Tools',
        'windows': 'Download from https://git-scm.com/download/win',
        'linux': 'sudo apt-get install git',
    },
    'pnpm': {
        'mac': 'npm install -g pnpm  or  brew install pnpm',
        'windows': 'npm install -g pnpm',
        'linux': 'npm install -g pnpm',
    },
}


@dataclass(frozen=True, slots=True)
class ToolStatus:
    requirement: ToolRequirement
    installed: bool
    version: str | None = None


@dataclass(frozen=True, slots=True)
class PrerequisiteReport:
    statuses: tuple[ToolStatus, ...]

    @property
    def missing_required(self) -> tuple[str, ...]:
        return tuple(
            s.requirement.command
            for s in self.statuses
            if s.requirement.required and not s.installed
        )

    @property
    def ok(self) -> bool:
        return not self.missing_required


def current_platform(name: str | None = None) -> Platform:
    name = name or sys.platform
    if name == 'darwin':
        return 'mac'
    if name.startswith('win'):
        return 'windows'
    return 'linux'


def install_guide(command: str, platform: Platform) -> str | None:
    return INSTALL_GUIDES.get(command, {}).get(platform)


def tool_version(runner: CommandRunner, command: str) -> str | None:
    """First line of ``<command> --version``, or None when it fails."""
    result = runner.run([command, '--version'])
    if not result.ok:
        return None
    lines = result.stdout.strip().splitlines()
    return lines[0] if lines else None


def check_prerequisites(
    runner: CommandRunner,
    console: Console,
    *,
    platform: Platform | None = None,
) -> PrerequisiteReport:
    """Check every requirement and print the results."""
    platform = platform or current_platform()
    console.heading('Checking required tools...')

    statuses: list[ToolStatus] = []
    for requirement in REQUIREMENTS:
        if runner.which(requirement.command) is None:
            statuses.append(ToolStatus(requirement, installed=False))
            if requirement.required:
                console.error(f'{requirement.label} is not installed')
            else:
                console.warn(f'{requirement.label} is not installed (recommended)')
            guide = install_guide(requirement.command, platform)
            if guide:
                console.info(f'How to install: {guide}')
            continue

        version = tool_version(runner, requirement.command)
        statuses.append(ToolStatus(requirement, installed=True, version=version))
        console.success(f'{requirement.label}: {version or "installed"}')

    report = PrerequisiteReport(tuple(statuses))
    if not report.ok:
        console.error('Required tools are missing.')
        console.info('Install them using the instructions above and run again.')
    return report
