"""Local tooling: pre-flight checks and best-effort installs."""

from .installer import (
    MCP_SERVERS,
    SKILLS,
    InstallReport,
    InstallResult,
    McpServer,
    ToolingInstaller,
)
from .prerequisites import PrerequisiteReport, check_prerequisites, current_platform
from .runner import SubprocessRunner

__all__ = [
    'InstallReport',
    'InstallResult',
    'MCP_SERVERS',
    'McpServer',
    'PrerequisiteReport',
    'SKILLS',
    'SubprocessRunner',
    'ToolingInstaller',
    'check_prerequisites',
    'current_platform',
]
