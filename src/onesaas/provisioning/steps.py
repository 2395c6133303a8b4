"""The six provisioning steps.

Each step talks to one external system, reads what earlier steps produced
from the ``ProvisioningContext`` and returns exactly one ``StepOutcome``.
Provider errors are caught here, at the step boundary:

  - repository, database, deployment: any error is fatal.
  - environment: per-key errors become warnings, the step still succeeds.
  - domain: any error becomes a non-fatal failure.
  - tooling: every install error is recorded as skipped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Protocol

from ..errors import ErrorKind, NameConflictError, ProviderError
from ..protocols import (
    Console,
    DatabaseHost,
    DeploymentHost,
    DomainRegistrar,
    RepositoryHost,
)
from ..security import DEFAULT_PASSWORD_LENGTH, generate_password
from ..tooling.installer import ToolingInstaller
from .choices import (
    AI_PROVIDERS,
    DomainChoice,
    parse_domain_choice,
    parse_provider_selection,
    parse_visibility,
)
from .context import (
    STEP_DATABASE,
    STEP_DEPLOYMENT,
    STEP_DOMAIN,
    STEP_ENVIRONMENT,
    STEP_REPOSITORY,
    STEP_TOOLING,
    ProvisioningContext,
    StepOutcome,
)

logger = logging.getLogger(__name__)

DATABASE_URL_KEY = 'DATABASE_URL'
DNS_RECORDS = (
    ('A', '@', '76.76.21.21'),
    ('CNAME', 'www', 'cname.vercel-dns.com'),
)


class ProvisioningStep(Protocol):
    name: str
    title: str
    fatal: bool

    async def run(self, context: ProvisioningContext) -> StepOutcome: ...


def _fatal(step_name: str, exc: ProviderError) -> StepOutcome:
    return StepOutcome.failed(
        step_name, kind=exc.kind, detail=str(exc), fatal=True,
    )


# ── 1. Repository ────────────────────────────────────────────────────


class RepositoryStep:
    name = STEP_REPOSITORY
    title = 'GitHub repository'
    fatal = True

    def __init__(self, host: RepositoryHost, console: Console) -> None:
        self._host = host
        self._console = console

    async def run(self, context: ProvisioningContext) -> StepOutcome:
        console = self._console
        console.dim('A GitHub fine-grained personal access token is required')
        console.dim('Issue one at: https://github.com/settings/personal-access-tokens/new')
        console.dim('Permissions: Repository access -> All repositories, Contents: Read and write')

        token = console.ask_secret('GitHub Token: ')
        context.credentials['github'] = token

        console.info('Checking token...')
        try:
            account = await self._host.authenticate(token)
        except ProviderError as exc:
            console.error(f'GitHub token error: {exc.message}')
            return _fatal(self.name, exc)
        console.success(f'GitHub account: {account.account}')

        console.heading('Repository visibility:')
        console.info('  1. Private - default')
        console.info('  2. Public')
        private = parse_visibility(console.ask('Choose (1 or 2, Enter=Private): '))

        repo_name = context.identity.resource_name
        console.info(f'Creating {"private" if private else "public"} repository...')
        try:
            repo = await self._host.create_repository(repo_name, private=private)
        except NameConflictError as exc:
            console.error('A repository with the same name already exists')
            return _fatal(self.name, exc)
        except ProviderError as exc:
            console.error(f'Repository creation failed: {exc.message}')
            return _fatal(self.name, exc)

        console.success(f'Repository created: {repo.url}')
        return StepOutcome.succeeded(
            self.name,
            {
                'repository_name': repo.name,
                'repository_url': repo.url,
                'clone_url': repo.clone_url,
                'account': account.account,
                'private': repo.private,
            },
        )


# ── 2. Database ──────────────────────────────────────────────────────


class DatabaseStep:
    name = STEP_DATABASE
    title = 'Supabase database'
    fatal = True

    def __init__(
        self,
        host: DatabaseHost,
        console: Console,
        *,
        organization_id: str = '',
        password_length: int = DEFAULT_PASSWORD_LENGTH,
        password_factory: Callable[[int], str] = generate_password,
    ) -> None:
        self._host = host
        self._console = console
        self._organization_id = organization_id
        self._password_length = password_length
        self._password_factory = password_factory

    async def run(self, context: ProvisioningContext) -> StepOutcome:
        console = self._console
        console.dim('A Supabase access token is required')
        console.dim('Issue one at: https://supabase.com/dashboard/account/tokens')

        token = console.ask_secret('Supabase Token: ')
        context.credentials['supabase'] = token

        console.info('Checking token...')
        try:
            organization = await self._host.authenticate(token)
        except ProviderError as exc:
            console.error(f'Supabase token error: {exc.message}')
            return _fatal(self.name, exc)

        organization_id = self._organization_id or organization.account_id
        console.success(f'Supabase organization: {organization.display_name or organization_id}')

        console.info('Creating project... (takes 1-2 minutes)')
        password = self._password_factory(self._password_length)
        try:
            database = await self._host.create_database(
                context.identity.resource_name,
                organization_id=organization_id,
                password=password,
            )
        except ProviderError as exc:
            console.error(f'Project creation failed: {exc.message}')
            return _fatal(self.name, exc)

        console.success(f'Project created: {database.dashboard_url}')
        return StepOutcome.succeeded(
            self.name,
            {
                'project_id': database.project_id,
                'organization_id': organization_id,
                'database_url': database.database_url,
                'dashboard_url': database.dashboard_url,
            },
        )


# ── 3. Deployment ────────────────────────────────────────────────────


class DeploymentStep:
    name = STEP_DEPLOYMENT
    title = 'Vercel deployment'
    fatal = True

    def __init__(self, host: DeploymentHost, console: Console) -> None:
        self._host = host
        self._console = console

    async def run(self, context: ProvisioningContext) -> StepOutcome:
        console = self._console
        if not context.succeeded(STEP_REPOSITORY):
            return StepOutcome.failed(
                self.name,
                kind=ErrorKind.CREATION,
                detail='deployment requires a created repository',
                fatal=True,
            )
        account = context.value(STEP_REPOSITORY, 'account')
        repo_name = context.value(STEP_REPOSITORY, 'repository_name')

        console.dim('A Vercel token is required')
        console.dim('Issue one at: https://vercel.com/account/tokens')

        token = console.ask_secret('Vercel Token: ')
        context.credentials['vercel'] = token

        console.info('Checking token...')
        try:
            vercel_account = await self._host.authenticate(token)
        except ProviderError as exc:
            console.error(f'Vercel token error: {exc.message}')
            return _fatal(self.name, exc)
        console.success(f'Vercel account: {vercel_account.account}')

        console.info('Creating project...')
        try:
            deployment = await self._host.create_deployment(
                context.identity.resource_name,
                repository=f'{account}/{repo_name}',
            )
        except ProviderError as exc:
            console.error(f'Project creation failed: {exc.message}')
            return _fatal(self.name, exc)

        console.success('Project created')
        return StepOutcome.succeeded(
            self.name,
            {
                'project_id': deployment.project_id,
                'project_name': deployment.name,
                'deploy_url': deployment.deploy_url,
                'dashboard_url': deployment.dashboard_url,
            },
        )


# ── 4. Environment ───────────────────────────────────────────────────


class EnvironmentStep:
    name = STEP_ENVIRONMENT
    title = 'Environment variables & AI gateway'
    fatal = False

    def __init__(self, host: DeploymentHost, console: Console) -> None:
        self._host = host
        self._console = console

    def _collect_values(self, context: ProvisioningContext) -> tuple[dict[str, str], list[str]]:
        console = self._console
        values = {DATABASE_URL_KEY: context.value(STEP_DATABASE, 'database_url')}

        console.heading('AI providers (multiple allowed):')
        for key, provider in AI_PROVIDERS.items():
            console.info(f'  {key}. {provider.label}')
        console.info('  5. All of the above')
        providers = parse_provider_selection(
            console.ask('Choose (1-5, comma separated, Enter=all): ')
        )
        for provider in providers:
            values[provider.env_key] = console.ask_secret(
                f'{provider.label} API Key (Enter=later): '
            )
        return values, [p.name for p in providers]

    async def run(self, context: ProvisioningContext) -> StepOutcome:
        console = self._console
        project_id = context.value(STEP_DEPLOYMENT, 'project_id')
        values, provider_names = self._collect_values(context)

        configured: list[str] = []
        failed: list[str] = []
        skipped: list[str] = []
        warnings: list[str] = []

        console.info('Setting environment variables...')
        for key, value in values.items():
            if not value:
                skipped.append(key)
                continue
            try:
                await self._host.set_environment_variable(project_id, key, value)
            except ProviderError as exc:
                failed.append(key)
                warnings.append(f'{key}: {exc.message}')
                console.warn(f'{key} could not be set - set it manually ({exc.message})')
                continue
            configured.append(key)
            console.success(f'{key} set')

        return StepOutcome.succeeded(
            self.name,
            {
                'configured_keys': tuple(configured),
                'failed_keys': tuple(failed),
                'skipped_keys': tuple(skipped),
                'ai_providers': tuple(provider_names),
            },
            warnings=tuple(warnings),
        )


# ── 5. Domain ────────────────────────────────────────────────────────


class DomainStep:
    name = STEP_DOMAIN
    title = 'Custom domain (optional)'
    fatal = False

    def __init__(self, registrar: DomainRegistrar, console: Console) -> None:
        self._registrar = registrar
        self._console = console

    def _failed(self, exc_or_detail: ProviderError | str, kind: ErrorKind = ErrorKind.CREATION) -> StepOutcome:
        if isinstance(exc_or_detail, ProviderError):
            kind, detail = exc_or_detail.kind, exc_or_detail.message
        else:
            detail = exc_or_detail
        return StepOutcome.failed(
            self.name, kind=kind, detail=detail, fatal=False, warnings=(detail,),
        )

    async def run(self, context: ProvisioningContext) -> StepOutcome:
        console = self._console
        project_id = context.value(STEP_DEPLOYMENT, 'project_id')

        console.heading('Custom domain options:')
        console.dim(f'  Current free domain: {context.value(STEP_DEPLOYMENT, "deploy_url")}')
        console.info('  1. Continue without a custom domain (default)')
        console.info('  2. Purchase a new domain')
        console.info('  3. Connect a domain you already own')
        choice = parse_domain_choice(console.ask('Choose (1, 2 or 3, Enter=Skip): '))

        if choice is DomainChoice.PURCHASE:
            return await self._purchase(project_id)
        if choice is DomainChoice.ATTACH_EXISTING:
            return await self._attach_existing(project_id)

        console.info('Skipping custom domain setup')
        return StepOutcome.skipped(self.name)

    async def _purchase(self, project_id: str) -> StepOutcome:
        console = self._console
        domain = console.ask('Domain to purchase (e.g. myapp.com): ').strip()
        if not domain:
            return StepOutcome.skipped(self.name)

        console.info(f'Checking domain: {domain}')
        try:
            availability = await self._registrar.check_domain(domain)
        except ProviderError as exc:
            console.warn(f'Domain check failed: {exc.message}')
            return self._failed(exc)
        if not availability.available:
            console.warn(f'Domain is not available: {domain}')
            console.dim('Choose another domain or search in the Vercel dashboard')
            return self._failed(f'domain {domain} is not available')

        try:
            price = await self._registrar.get_domain_price(domain)
        except ProviderError as exc:
            console.warn(f'Could not fetch domain price: {exc.message}')
            return self._failed(exc)

        console.heading('Domain details:')
        console.info(f'  Domain: {domain}')
        console.info(f'  Price: ${price.price:g}/year')
        if not console.confirm('Purchase this domain?'):
            console.info('Domain purchase declined')
            return StepOutcome.skipped(self.name)

        console.info('Purchasing domain...')
        try:
            await self._registrar.purchase_domain(domain)
        except ProviderError as exc:
            console.error(f'Domain purchase failed: {exc.message}')
            console.dim('Buy it directly from the dashboard: https://vercel.com/domains')
            return self._failed(exc)
        console.success(f'Domain purchased: {domain}')

        console.info('Connecting domain to project...')
        try:
            await self._registrar.attach_domain(project_id, domain)
        except ProviderError as exc:
            console.warn(f'Domain connection failed: {exc.message}')
            console.dim('Connect it manually from the Vercel dashboard')
            return self._failed(f'domain {domain} purchased but not attached: {exc.message}', exc.kind)

        console.success(f'Domain connected: https://{domain}')
        return StepOutcome.succeeded(
            self.name,
            {'domain': domain, 'domain_url': f'https://{domain}', 'purchased': True},
        )

    async def _attach_existing(self, project_id: str) -> StepOutcome:
        console = self._console
        domain = console.ask('Domain to connect (e.g. myapp.com): ').strip()
        if not domain:
            return StepOutcome.skipped(self.name)

        console.info('Connecting domain to project...')
        try:
            await self._registrar.attach_domain(project_id, domain)
        except ProviderError as exc:
            console.error(f'Domain connection failed: {exc.message}')
            return self._failed(exc)

        console.success(f'Domain connected: {domain}')
        console.warn('DNS configuration required:')
        console.info('  Add these DNS records at your domain registrar:')
        for record_type, host, target in DNS_RECORDS:
            console.info(f'  {record_type:<5} {host:<4} {target}')
        return StepOutcome.succeeded(
            self.name,
            {'domain': domain, 'domain_url': f'https://{domain}', 'purchased': False},
        )


# ── 6. Tooling ───────────────────────────────────────────────────────


class ToolingStep:
    name = STEP_TOOLING
    title = 'Agent CLI & MCP servers'
    fatal = False

    def __init__(
        self,
        installer: ToolingInstaller,
        console: Console,
        *,
        enabled: bool = True,
    ) -> None:
        self._installer = installer
        self._console = console
        self._enabled = enabled

    async def run(self, context: ProvisioningContext) -> StepOutcome:
        if not self._enabled:
            self._console.info('Skipping local tooling installation')
            return StepOutcome.skipped(self.name)

        # Installs block on subprocesses for minutes; keep them off the loop.
        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(None, self._installer.install_all)
        for result in report.results:
            if result.installed:
                self._console.success(f'{result.label} installed')
            else:
                # Install failures are reported and dropped here.
                self._console.dim(f'{result.label} skipped')
                logger.info('Tooling install skipped: %s (%s)', result.label, result.detail)

        return StepOutcome.succeeded(
            self.name,
            {
                'agent_installed': report.agent_available,
                'installed': report.installed,
                'skipped': report.skipped,
            },
            warnings=tuple(f'{r.label}: skipped' for r in report.results if not r.installed),
        )
