"""Best-effort installation of the coding agent CLI and its plugins.

Every install is a single command whose failure is recorded and dropped:
local developer tooling never blocks a run that already created cloud
resources. When the agent CLI is still unavailable after the install attempt,
the MCP servers and skills are skipped without running anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..protocols import CommandRunner

logger = logging.getLogger(__name__)

AGENT_COMMAND = 'claude'
AGENT_PACKAGE = '@anthropic-ai/claude-code'


@dataclass(frozen=True, slots=True)
class McpServer:
    name: str
    package: str
    command: str


MCP_SERVERS = (
    McpServer('filesystem', '@anthropic-ai/mcp-server-filesystem', 'mcp-server-filesystem'),
    McpServer('github', '@anthropic-ai/mcp-server-github', 'mcp-server-github'),
    McpServer('postgres', '@anthropic-ai/mcp-server-postgres', 'mcp-server-postgres'),
    McpServer('context7', '@anthropic-ai/mcp-server-context7', 'mcp-server-context7'),
    McpServer('fetch', '@anthropic-ai/mcp-server-fetch', 'mcp-server-fetch'),
    McpServer('memory', '@anthropic-ai/mcp-server-memory', 'mcp-server-memory'),
    McpServer('brave-search', '@anthropic-ai/mcp-server-brave-search', 'mcp-server-brave-search'),
)

SKILLS = (
    'anthropics/claude-code-base-skills',
    'anthropics/claude-code-git-skills',
    'anthropics/claude-code-web-skills',
    'anthropics/claude-code-db-skills',
    'anthropics/claude-code-nextjs-skills',
    'anthropics/claude-code-react-skills',
    'anthropics/claude-code-typescript-skills',
    'anthropics/claude-code-tailwind-skills',
    'anthropics/claude-code-prisma-skills',
)


@dataclass(frozen=True, slots=True)
class InstallResult:
    label: str
    installed: bool
    detail: str = ''


@dataclass(frozen=True, slots=True)
class InstallReport:
    agent_available: bool
    results: tuple[InstallResult, ...]

    @property
    def installed(self) -> tuple[str, ...]:
        return tuple(r.label for r in self.results if r.installed)

    @property
    def skipped(self) -> tuple[str, ...]:
        return tuple(r.label for r in self.results if not r.installed)


def skill_label(skill: str) -> str:
    return f"skill {skill.split('/', 1)[-1]}"


class ToolingInstaller:
    """Installs the agent CLI, MCP servers and skills via npm / the agent CLI."""

    def __init__(
        self,
        runner: CommandRunner,
        *,
        mcp_servers: tuple[McpServer, ...] = MCP_SERVERS,
        skills: tuple[str, ...] = SKILLS,
    ) -> None:
        self._runner = runner
        self._mcp_servers = mcp_servers
        self._skills = skills

    def _install(self, label: str, args: list[str]) -> InstallResult:
        result = self._runner.run(args)
        if result.ok:
            return InstallResult(label, installed=True)
        detail = (result.stderr or result.stdout).strip()[:200]
        return InstallResult(label, installed=False, detail=detail or f'exit code {result.returncode}')

    def ensure_agent(self) -> InstallResult:
        if self._runner.which(AGENT_COMMAND) is not None:
            return InstallResult('agent CLI', installed=True, detail='already installed')
        return self._install('agent CLI', ['npm', 'install', '-g', AGENT_PACKAGE])

    def install_all(self) -> InstallReport:
        agent = self.ensure_agent()
        results = [agent]
        if not agent.installed:
            logger.warning(
                'Agent CLI install failed; install manually: npm install -g %s',
                AGENT_PACKAGE,
            )
            results.extend(
                InstallResult(f'MCP {s.name}', installed=False, detail='agent CLI unavailable')
                for s in self._mcp_servers
            )
            results.extend(
                InstallResult(skill_label(skill), installed=False, detail='agent CLI unavailable')
                for skill in self._skills
            )
            return InstallReport(agent_available=False, results=tuple(results))

        for server in self._mcp_servers:
            results.append(
                self._install(f'MCP {server.name}', ['npm', 'install', '-g', server.package])
            )
        for skill in self._skills:
            results.append(
                self._install(skill_label(skill), [AGENT_COMMAND, 'skill', 'install', skill])
            )
        return InstallReport(agent_available=True, results=tuple(results))
