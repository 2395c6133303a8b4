"""Generated project files."""

from .documents import (
    AGENT_CONFIG_FILE,
    EDITOR_RULES_FILE,
    ENV_FILE,
    PROJECT_CONTEXT_FILE,
    SECRET_FILES,
    build_agent_config,
    project_documents,
    render_agent_config,
    render_editor_rules,
    render_env_file,
    render_project_context,
    secrets_file_values,
    source_scaffold,
)
from .writer import WrittenFile, write_documents

__all__ = [
    'AGENT_CONFIG_FILE',
    'EDITOR_RULES_FILE',
    'ENV_FILE',
    'PROJECT_CONTEXT_FILE',
    'SECRET_FILES',
    'WrittenFile',
    'build_agent_config',
    'project_documents',
    'render_agent_config',
    'render_editor_rules',
    'render_env_file',
    'render_project_context',
    'secrets_file_values',
    'source_scaffold',
    'write_documents',
]
