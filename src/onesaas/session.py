"""Interactive setup session.

Owns one run end to end: pre-flight tool check, project names and
confirmation, the provisioning workflow, the summary and the generated
project files. Adapters are built from ``SetupSettings`` unless injected.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from .identity import ProjectIdentity, build_identity
from .protocols import (
    CommandRunner,
    Console,
    DatabaseHost,
    DeploymentHost,
    DomainRegistrar,
    RepositoryHost,
)
from .providers import (
    GitHubClient,
    SupabaseManagementClient,
    VercelClient,
    close_shared_async_client,
)
from .provisioning import (
    STEP_DATABASE,
    STEP_DEPLOYMENT,
    STEP_DOMAIN,
    STEP_REPOSITORY,
    DatabaseStep,
    DeploymentStep,
    DomainStep,
    EnvironmentStep,
    ExitCode,
    ProvisioningContext,
    ProvisioningStep,
    ProvisioningWorkflow,
    RepositoryStep,
    ToolingStep,
)
from .scaffold import project_documents, write_documents
from .settings import SetupSettings
from .tooling import SubprocessRunner, ToolingInstaller, check_prerequisites

logger = logging.getLogger(__name__)

DATABASE_URL_PREVIEW_LENGTH = 50


def truncate_secret(value: str, length: int = DATABASE_URL_PREVIEW_LENGTH) -> str:
    return value if len(value) <= length else value[:length] + '...'


class SetupSession:
    """One interactive setup run.

    ``run`` returns the process exit code; it never calls ``sys.exit``.
    """

    def __init__(
        self,
        settings: SetupSettings,
        console: Console,
        *,
        runner: CommandRunner | None = None,
        repository_host: RepositoryHost | None = None,
        database_host: DatabaseHost | None = None,
        deployment_host: DeploymentHost | None = None,
        domain_registrar: DomainRegistrar | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._console = console
        self._runner = runner or SubprocessRunner()
        self._http_client = http_client

        timeout = settings.http_timeout_seconds
        self._repository_host = repository_host or GitHubClient(
            base_url=settings.github_api_url,
            http_client=http_client,
            timeout_seconds=timeout,
        )
        self._database_host = database_host or SupabaseManagementClient(
            base_url=settings.supabase_api_url,
            region=settings.supabase_region,
            plan=settings.supabase_plan,
            http_client=http_client,
            timeout_seconds=timeout,
        )
        vercel: VercelClient | None = None
        if deployment_host is None or domain_registrar is None:
            vercel = VercelClient(
                base_url=settings.vercel_api_url,
                http_client=http_client,
                timeout_seconds=timeout,
            )
        self._deployment_host = deployment_host or vercel
        # Domains go through the same authenticated Vercel account.
        if domain_registrar is None and isinstance(deployment_host, DomainRegistrar):
            domain_registrar = deployment_host
        self._domain_registrar = domain_registrar or vercel

    @property
    def project_dir(self) -> Path:
        return self._settings.output_dir

    def build_steps(self) -> list[ProvisioningStep]:
        console = self._console
        settings = self._settings
        return [
            RepositoryStep(self._repository_host, console),
            DatabaseStep(
                self._database_host,
                console,
                organization_id=settings.supabase_organization_id,
                password_length=settings.db_password_length,
            ),
            DeploymentStep(self._deployment_host, console),
            EnvironmentStep(self._deployment_host, console),
            DomainStep(self._domain_registrar, console),
            ToolingStep(
                ToolingInstaller(self._runner),
                console,
                enabled=not settings.skip_tooling,
            ),
        ]

    async def run(self) -> ExitCode:
        try:
            return await self._run()
        finally:
            if self._http_client is None:
                await close_shared_async_client()

    async def _run(self) -> ExitCode:
        console = self._console
        console.banner()

        if not check_prerequisites(self._runner, console).ok:
            return ExitCode.FAILURE

        identity = self._ask_identity()
        if identity is None:
            return ExitCode.FAILURE

        self._show_structure(identity)
        if not console.confirm('Proceed?'):
            console.warn('Cancelled')
            return ExitCode.OK

        context = ProvisioningContext(identity=identity)
        workflow = ProvisioningWorkflow(
            self.build_steps(),
            console,
            on_cloud_ready=self._on_cloud_ready,
        )
        logger.info('Setup started for %s', identity.resource_name)
        result = await workflow.run(context)
        if not result.completed:
            return result.exit_code

        self._show_next_steps(context)
        console.success('All done!')
        return result.exit_code

    def _ask_identity(self) -> ProjectIdentity | None:
        console = self._console
        console.heading('Project details')
        parent = console.ask('Parent project name (e.g. my-company): ').strip()
        if not parent:
            console.error('A parent project name is required')
            return None
        sub = console.ask('Sub project name (e.g. my-app): ').strip()
        if not sub:
            console.error('A sub project name is required')
            return None
        try:
            return build_identity(parent, sub)
        except ValueError as exc:
            console.error(str(exc))
            return None

    def _show_structure(self, identity: ProjectIdentity) -> None:
        console = self._console
        name = identity.resource_name
        console.heading('Project structure:')
        console.info(f'  {identity.parent_name}/')
        console.info(f'  └── {identity.sub_name}/')
        console.heading('Resources to be created:')
        console.info(f'  GitHub:   {name}')
        console.info(f'  Supabase: {name}')
        console.info(f'  Vercel:   {name}')

    def _on_cloud_ready(self, context: ProvisioningContext) -> None:
        self._show_summary(context)
        self._write_project_files(context)

    def _show_summary(self, context: ProvisioningContext) -> None:
        console = self._console
        console.heading('Setup summary:')
        console.info(f'  Repository: {context.value(STEP_REPOSITORY, "repository_url")}')
        console.info(f'  Database:   {context.value(STEP_DATABASE, "dashboard_url")}')
        console.info(f'  Deployment: {context.value(STEP_DEPLOYMENT, "deploy_url")}')
        if context.succeeded(STEP_DOMAIN):
            console.info(f'  Domain:     {context.value(STEP_DOMAIN, "domain_url")}')
        console.dim(f'  DATABASE_URL: {truncate_secret(context.value(STEP_DATABASE, "database_url"))}')

    def _write_project_files(self, context: ProvisioningContext) -> None:
        console = self._console
        project_dir = self.project_dir
        documents = project_documents(context, project_dir=project_dir.resolve())
        for written in write_documents(project_dir, documents):
            if written.ok:
                console.success(f'{written.path.relative_to(project_dir)} written')
            else:
                console.warn(f'{written.path} could not be written: {written.error}')

    def _show_next_steps(self, context: ProvisioningContext) -> None:
        console = self._console
        console.heading('Next steps:')
        console.info(f'  1. git remote add origin {context.value(STEP_REPOSITORY, "clone_url")}')
        console.info('  2. git push -u origin main  (Vercel deploys on push)')
        console.info('  3. claude  (start the coding agent)')
        console.info(f'  4. Visit {context.value(STEP_DEPLOYMENT, "deploy_url")}')
