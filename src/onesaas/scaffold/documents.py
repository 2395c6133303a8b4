"""Pure renderers for the files a setup run leaves in the project directory.

Every function here maps a ``ProvisioningContext`` (or plain values) to a
document value; nothing touches the filesystem. ``scaffold.writer`` does the
I/O.

Files:
  - ``.env.local``: ``KEY=VALUE`` lines, no escaping.
  - ``CLAUDE.md``: project context for the coding agent.
  - ``.cursorrules``: editor rules.
  - ``.claude/settings.json``: agent configuration (MCP servers, skills,
    hooks, settings).
  - ``src/`` starter modules: ``lib/utils.ts``, ``types/index.ts``,
    ``lib/ai.ts``, ``app/api/chat/route.ts`` and ``.gitkeep`` markers for
    the empty ``components`` and ``hooks`` directories.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from ..provisioning.context import (
    STEP_DATABASE,
    STEP_DEPLOYMENT,
    STEP_REPOSITORY,
    ProvisioningContext,
)
from ..tooling.installer import MCP_SERVERS, SKILLS

ENV_FILE = Path('.env.local')
PROJECT_CONTEXT_FILE = Path('CLAUDE.md')
EDITOR_RULES_FILE = Path('.cursorrules')
AGENT_CONFIG_FILE = Path('.claude') / 'settings.json'

UTILS_MODULE = Path('src/lib/utils.ts')
TYPES_MODULE = Path('src/types/index.ts')
AI_MODULE = Path('src/lib/ai.ts')
CHAT_ROUTE_MODULE = Path('src/app/api/chat/route.ts')
# Directories that get no starter module.
EMPTY_SOURCE_DIRS = (Path('src/components'), Path('src/hooks'))

# Written with owner-only permissions: both carry DATABASE_URL.
SECRET_FILES = frozenset({ENV_FILE, AGENT_CONFIG_FILE})

# Optional keys for MCP servers, written empty for the operator to fill in.
ENV_PLACEHOLDERS = ('OPENAI_API_KEY', 'GOOGLE_API_KEY', 'BRAVE_API_KEY')

AGENT_HOOKS = {
    'pre-commit': 'pnpm run lint && pnpm run typecheck',
    'post-push': 'echo "Deployed to Vercel!"',
}
AGENT_SETTINGS = {
    'autoCommit': False,
    'autoPush': False,
    'theme': 'dark',
}


def secrets_file_values(context: ProvisioningContext) -> dict[str, str]:
    """Values persisted to ``.env.local``: only the database URL is a secret."""
    values = {'DATABASE_URL': context.value(STEP_DATABASE, 'database_url')}
    for key in ENV_PLACEHOLDERS:
        values.setdefault(key, '')
    return values


def render_env_file(values: Mapping[str, str]) -> str:
    """``KEY=VALUE`` per line, insertion order, no quoting or escaping."""
    for key in values:
        if not key or '=' in key or '\n' in key:
            raise ValueError(f'invalid env key: {key!r}')
    return ''.join(f'{key}={value}\n' for key, value in values.items())


def render_project_context(context: ProvisioningContext) -> str:
    identity = context.identity
    lines = [
        f'# {identity.resource_name}',
        '',
        '## Overview',
        f'- **Project**: {identity.display_path}',
        '- **Stack**: Next.js 14, TypeScript, Tailwind CSS, Prisma, Supabase',
        '- **Deploy**: Vercel',
        '- **Dev agent**: Claude Code',
    ]
    if context.succeeded(STEP_REPOSITORY):
        lines.append(f'- **Repository**: {context.value(STEP_REPOSITORY, "repository_url")}')
    if context.succeeded(STEP_DEPLOYMENT):
        lines.append(f'- **Production URL**: {context.value(STEP_DEPLOYMENT, "deploy_url")}')
    lines += [
        '',
        '## Key directories',
        '- `src/app/api/chat` - streaming chat route',
        '- `src/components` - React components',
        '- `src/hooks` - React hooks',
        '- `src/lib` - utilities and AI provider setup',
        '- `src/types` - shared type definitions',
        '',
        '## Environment variables',
        '- `DATABASE_URL` - Supabase connection string',
        '- `OPENAI_API_KEY`, `ANTHROPIC_API_KEY`, `GOOGLE_GENERATIVE_AI_API_KEY` - chat providers',
        '',
        '## Conventions',
        '- TypeScript strict mode',
        '- Tailwind CSS utilities first',
        '- Server Components by default',
        "- Client components declare 'use client'",
    ]
    return '\n'.join(lines) + '\n'


def render_editor_rules() -> str:
    return (
        '# Project rules\n'
        '\n'
        '## Stack\n'
        '- Next.js 14 App Router\n'
        '- TypeScript (strict)\n'
        '- Tailwind CSS\n'
        '- Prisma + Supabase\n'
        '- pnpm\n'
        '\n'
        '## Coding rules\n'
        '- Function components only\n'
        '- Server Components first\n'
        "- Client components must declare 'use client'\n"
        '- Import paths use @/\n'
        '\n'
        '## Layout\n'
        '```\n'
        'src/\n'
        '├── app/          # pages\n'
        '├── components/   # UI components\n'
        '├── lib/          # utilities\n'
        '└── types/        # type definitions\n'
        '```\n'
    )


def render_utils_module() -> str:
    return (
        "import { clsx, type ClassValue } from 'clsx'\n"
        "import { twMerge } from 'tailwind-merge'\n"
        '\n'
        'export function cn(...inputs: ClassValue[]) {\n'
        '  return twMerge(clsx(inputs))\n'
        '}\n'
    )


def render_types_module() -> str:
    return (
        '// Shared type definitions\n'
        '\n'
        'export interface User {\n'
        '  id: string\n'
        '  email: string\n'
        '  name?: string\n'
        '  createdAt: Date\n'
        '}\n'
        '\n'
        'export interface ApiResponse<T> {\n'
        '  success: boolean\n'
        '  data?: T\n'
        '  error?: string\n'
        '}\n'
    )


def render_ai_module() -> str:
    """Provider clients for the AI SDK; keys come from the environment."""
    return (
        "import { createOpenAI } from '@ai-sdk/openai'\n"
        "import { createAnthropic } from '@ai-sdk/anthropic'\n"
        "import { createGoogleGenerativeAI } from '@ai-sdk/google'\n"
        '\n'
        'export const openai = createOpenAI({\n'
        '  apiKey: process.env.OPENAI_API_KEY,\n'
        '})\n'
        '\n'
        'export const anthropic = createAnthropic({\n'
        '  apiKey: process.env.ANTHROPIC_API_KEY,\n'
        '})\n'
        '\n'
        'export const google = createGoogleGenerativeAI({\n'
        '  apiKey: process.env.GOOGLE_GENERATIVE_AI_API_KEY,\n'
        '})\n'
        '\n'
        "export const defaultModel = openai('gpt-4o-mini')\n"
        "export const smartModel = openai('gpt-4o')\n"
        "export const claudeModel = anthropic('claude-sonnet-4-20250514')\n"
        "export const geminiModel = google('gemini-1.5-pro')\n"
    )


def render_chat_route_module() -> str:
    return (
        "import { streamText } from 'ai'\n"
        "import { defaultModel } from '@/lib/ai'\n"
        '\n'
        'export async function POST(req: Request) {\n'
        '  const { messages } = await req.json()\n'
        '\n'
        '  const result = streamText({\n'
        '    model: defaultModel,\n'
        '    messages,\n'
        '  })\n'
        '\n'
        '  return result.toDataStreamResponse()\n'
        '}\n'
    )


def source_scaffold() -> dict[Path, str]:
    """Starter source files; empty directories are kept with ``.gitkeep``."""
    documents = {
        UTILS_MODULE: render_utils_module(),
        TYPES_MODULE: render_types_module(),
        AI_MODULE: render_ai_module(),
        CHAT_ROUTE_MODULE: render_chat_route_module(),
    }
    for directory in EMPTY_SOURCE_DIRS:
        documents[directory / '.gitkeep'] = ''
    return documents


def build_agent_config(
    context: ProvisioningContext,
    *,
    project_dir: Path,
) -> dict[str, Any]:
    """Agent configuration mapping.

    The GitHub token is referenced through ``${GITHUB_TOKEN}`` and never
    written; the database URL is the one secret the run persists.
    """
    env_by_server: dict[str, dict[str, str]] = {
        'github': {'GITHUB_TOKEN': '${GITHUB_TOKEN}'},
        'postgres': {'DATABASE_URL': context.value(STEP_DATABASE, 'database_url')},
        'brave-search': {'BRAVE_API_KEY': ''},
    }
    servers: dict[str, dict[str, Any]] = {}
    for server in MCP_SERVERS:
        entry: dict[str, Any] = {'command': server.command}
        if server.name == 'filesystem':
            entry['args'] = [str(project_dir)]
        if server.name in env_by_server:
            entry['env'] = env_by_server[server.name]
        servers[server.name] = entry

    return {
        'mcpServers': servers,
        'skills': list(SKILLS),
        'hooks': dict(AGENT_HOOKS),
        'settings': dict(AGENT_SETTINGS),
    }


def render_agent_config(context: ProvisioningContext, *, project_dir: Path) -> str:
    return json.dumps(build_agent_config(context, project_dir=project_dir), indent=2) + '\n'


def project_documents(
    context: ProvisioningContext,
    *,
    project_dir: Path,
) -> dict[Path, str]:
    """All generated files, keyed by path relative to the project dir."""
    return {
        ENV_FILE: render_env_file(secrets_file_values(context)),
        PROJECT_CONTEXT_FILE: render_project_context(context),
        EDITOR_RULES_FILE: render_editor_rules(),
        AGENT_CONFIG_FILE: render_agent_config(context, project_dir=project_dir),
        **source_scaffold(),
    }
