"""In-memory implementations of the capability protocols.

They satisfy the protocol interfaces in ``onesaas.protocols`` but keep
everything in lists and dicts. Every call is appended to ``calls`` so a
test can assert which remote operations ran, and a ``ProviderError`` placed
in ``failures`` under an operation name is raised by that operation.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, Sequence

from .errors import AuthError, ConfigurationError, NameConflictError, ProviderError
from .protocols import (
    AccountIdentity,
    CommandResult,
    DatabaseHandle,
    DeploymentHandle,
    DomainAvailability,
    DomainPrice,
    RepositoryHandle,
)
from .providers.supabase import DASHBOARD_URL_TEMPLATE, build_database_url
from .providers.vercel import deploy_url_for, slugify_project_name


class _Recorder:
    provider = 'fake'

    def __init__(
        self,
        *,
        valid_tokens: Iterable[str] = ('valid-token',),
        failures: dict[str, ProviderError] | None = None,
    ) -> None:
        self.valid_tokens = set(valid_tokens)
        self.failures: dict[str, ProviderError] = dict(failures or {})
        self.calls: list[tuple] = []
        self.token: str | None = None

    def _call(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        failure = self.failures.get(operation)
        if failure is not None:
            raise failure

    def _check_token(self, token: str) -> None:
        if token not in self.valid_tokens:
            raise AuthError(self.provider, 'Bad credentials', status_code=401)
        self.token = token

    def called(self, operation: str) -> bool:
        return any(call[0] == operation for call in self.calls)


class InMemoryRepositoryHost(_Recorder):
    provider = 'github'

    def __init__(self, *, login: str = 'octocat', existing: Iterable[str] = (), **kwargs) -> None:
        super().__init__(**kwargs)
        self.login = login
        self.repositories: dict[str, RepositoryHandle] = {}
        self._existing = set(existing)

    async def authenticate(self, token: str) -> AccountIdentity:
        self._call('authenticate', token)
        self._check_token(token)
        return AccountIdentity(provider=self.provider, account=self.login, display_name=self.login)

    async def create_repository(self, name: str, *, private: bool = True) -> RepositoryHandle:
        self._call('create_repository', name, private)
        if name in self._existing or name in self.repositories:
            raise NameConflictError(self.provider, 'name already exists on this account', status_code=422)
        repo = RepositoryHandle(
            name=name,
            url=f'https://github.com/{self.login}/{name}',
            clone_url=f'https://github.com/{self.login}/{name}.git',
            private=private,
        )
        self.repositories[name] = repo
        return repo


class InMemoryDatabaseHost(_Recorder):
    provider = 'supabase'

    def __init__(
        self,
        *,
        organization_id: str = 'org-1',
        organization_name: str = 'Default Org',
        region: str = 'ap-south-1',
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.organization_id = organization_id
        self.organization_name = organization_name
        self.region = region
        self.databases: dict[str, DatabaseHandle] = {}
        self.passwords: dict[str, str] = {}

    async def authenticate(self, token: str) -> AccountIdentity:
        self._call('authenticate', token)
        self._check_token(token)
        return AccountIdentity(
            provider=self.provider,
            account=self.organization_name,
            display_name=self.organization_name,
            account_id=self.organization_id,
        )

    async def create_database(
        self, name: str, *, organization_id: str, password: str,
    ) -> DatabaseHandle:
        self._call('create_database', name, organization_id)
        project_id = f'{name}-ref'
        handle = DatabaseHandle(
            project_id=project_id,
            organization_id=organization_id,
            database_url=build_database_url(
                project_id=project_id, password=password, region=self.region,
            ),
            dashboard_url=DASHBOARD_URL_TEMPLATE.format(project_id=project_id),
        )
        self.databases[name] = handle
        self.passwords[name] = password
        return handle


class InMemoryDeploymentHost(_Recorder):
    """DeploymentHost and DomainRegistrar in one, like the Vercel client."""

    provider = 'vercel'

    def __init__(
        self,
        *,
        username: str = 'vercel-user',
        unavailable_domains: Iterable[str] = (),
        domain_price: float = 20.0,
        env_failures: Iterable[str] = (),
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.username = username
        self.projects: dict[str, DeploymentHandle] = {}
        self.env: dict[str, dict[str, str]] = {}
        self.purchased: list[str] = []
        self.attached: dict[str, list[str]] = {}
        self.unavailable_domains = set(unavailable_domains)
        self.domain_price = domain_price
        self.env_failures = set(env_failures)

    async def authenticate(self, token: str) -> AccountIdentity:
        self._call('authenticate', token)
        self._check_token(token)
        return AccountIdentity(provider=self.provider, account=self.username)

    async def create_deployment(self, name: str, *, repository: str) -> DeploymentHandle:
        self._call('create_deployment', name, repository)
        slug = slugify_project_name(name)
        handle = DeploymentHandle(
            project_id=f'prj_{slug}',
            name=slug,
            deploy_url=deploy_url_for(slug),
            dashboard_url=f'https://vercel.com/{self.username}/{slug}',
        )
        self.projects[handle.project_id] = handle
        return handle

    async def set_environment_variable(self, project_id: str, key: str, value: str) -> None:
        self._call('set_environment_variable', project_id, key)
        if key in self.env_failures:
            raise ConfigurationError(self.provider, f'could not set {key}', status_code=400)
        self.env.setdefault(project_id, {})[key] = value

    async def check_domain(self, domain: str) -> DomainAvailability:
        self._call('check_domain', domain)
        return DomainAvailability(name=domain, available=domain not in self.unavailable_domains)

    async def get_domain_price(self, domain: str) -> DomainPrice:
        self._call('get_domain_price', domain)
        return DomainPrice(name=domain, price=self.domain_price)

    async def purchase_domain(self, domain: str) -> None:
        self._call('purchase_domain', domain)
        self.purchased.append(domain)

    async def attach_domain(self, project_id: str, domain: str) -> None:
        self._call('attach_domain', project_id, domain)
        self.attached.setdefault(project_id, []).append(domain)


class ScriptedConsole:
    """Console that answers prompts from a queue and records everything shown.

    Raises ``AssertionError`` when a prompt is asked with no answer left, so a
    test fails loudly instead of hanging.
    """

    def __init__(self, answers: Sequence[str] = ()) -> None:
        self._answers = deque(answers)
        self.prompts: list[str] = []
        self.messages: list[tuple[str, str]] = []

    def _next(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._answers:
            raise AssertionError(f'no scripted answer for prompt {prompt!r}')
        return self._answers.popleft()

    @property
    def remaining_answers(self) -> int:
        return len(self._answers)

    def text(self, kind: str | None = None) -> str:
        return '\n'.join(m for k, m in self.messages if kind is None or k == kind)

    def banner(self) -> None:
        self.messages.append(('banner', 'OneSaaS'))

    def step(self, current: int, total: int, description: str) -> None:
        self.messages.append(('step', f'Step {current}/{total}: {description}'))

    def info(self, message: str) -> None:
        self.messages.append(('info', message))

    def success(self, message: str) -> None:
        self.messages.append(('success', message))

    def warn(self, message: str) -> None:
        self.messages.append(('warn', message))

    def error(self, message: str) -> None:
        self.messages.append(('error', message))

    def dim(self, message: str) -> None:
        self.messages.append(('dim', message))

    def heading(self, message: str) -> None:
        self.messages.append(('heading', message))

    def ask(self, prompt: str) -> str:
        return self._next(prompt)

    def ask_secret(self, prompt: str) -> str:
        return self._next(prompt)

    def confirm(self, prompt: str) -> bool:
        return self._next(prompt).strip().lower() in ('y', 'yes')


class FakeCommandRunner:
    """CommandRunner with a fixed set of installed commands.

    ``failing`` holds command prefixes (joined by spaces) whose runs exit 1.
    """

    def __init__(
        self,
        *,
        installed: Iterable[str] = ('node', 'git', 'pnpm', 'npm', 'claude'),
        failing: Iterable[str] = (),
        versions: dict[str, str] | None = None,
    ) -> None:
        self.installed = set(installed)
        self.failing = tuple(failing)
        self.versions = dict(versions or {})
        self.runs: list[tuple[str, ...]] = []

    def which(self, command: str) -> str | None:
        return f'/usr/bin/{command}' if command in self.installed else None

    def run(self, args: Sequence[str], *, capture: bool = True) -> CommandResult:
        argv = tuple(args)
        self.runs.append(argv)
        joined = ' '.join(argv)
        if any(joined.startswith(prefix) for prefix in self.failing):
            return CommandResult(1, stderr=f'{argv[0]}: failed')
        if argv[0] not in self.installed:
            return CommandResult(127, stderr=f'{argv[0]}: command not found')
        if argv[1:] == ('--version',):
            return CommandResult(0, stdout=self.versions.get(argv[0], f'{argv[0]} 1.0.0') + '\n')
        return CommandResult(0)
