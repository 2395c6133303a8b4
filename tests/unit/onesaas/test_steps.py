from __future__ import annotations

import threading

import pytest

from onesaas.errors import CreationError, ErrorKind, TransportError
from onesaas.identity import build_identity
from onesaas.inmemory import (
    FakeCommandRunner,
    InMemoryDatabaseHost,
    InMemoryDeploymentHost,
    InMemoryRepositoryHost,
    ScriptedConsole,
)
from onesaas.provisioning import (
    DatabaseStep,
    DeploymentStep,
    DomainStep,
    EnvironmentStep,
    ProvisioningContext,
    RepositoryStep,
    StepStatus,
    ToolingStep,
)
from onesaas.tooling import ToolingInstaller


def _context() -> ProvisioningContext:
    return ProvisioningContext(identity=build_identity('Acme', 'App'))


# ── Repository ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_repository_step_creates_private_repo_by_default(repository_host):
    console = ScriptedConsole(['valid-token', ''])
    context = _context()

    outcome = await RepositoryStep(repository_host, console).run(context)

    assert outcome.status is StepStatus.SUCCEEDED
    assert outcome.produced_values['repository_name'] == 'acme-app'
    assert outcome.produced_values['private'] is True
    assert outcome.produced_values['account'] == 'octocat'
    assert context.credentials['github'] == 'valid-token'
    assert console.prompts == ['GitHub Token: ', 'Choose (1 or 2, Enter=Private): ']


@pytest.mark.asyncio
async def test_repository_step_public_choice(repository_host):
    outcome = await RepositoryStep(repository_host, ScriptedConsole(['valid-token', '2'])).run(_context())
    assert outcome.produced_values['private'] is False


@pytest.mark.asyncio
async def test_repository_step_bad_token_is_fatal_auth(repository_host):
    console = ScriptedConsole(['bad-token'])

    outcome = await RepositoryStep(repository_host, console).run(_context())

    assert outcome.is_fatal_failure
    assert outcome.error_kind is ErrorKind.AUTH
    assert not repository_host.called('create_repository')
    # No visibility prompt after a rejected token.
    assert console.remaining_answers == 0
    assert len(console.prompts) == 1


@pytest.mark.asyncio
async def test_repository_step_name_conflict():
    host = InMemoryRepositoryHost(existing={'acme-app'})
    console = ScriptedConsole(['valid-token', '1'])

    outcome = await RepositoryStep(host, console).run(_context())

    assert outcome.is_fatal_failure
    assert outcome.error_kind is ErrorKind.NAME_CONFLICT
    assert 'A repository with the same name already exists' in console.text('error')


# ── Database ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_database_step_uses_first_organization_and_generated_password(database_host):
    step = DatabaseStep(database_host, ScriptedConsole(['valid-token']), password_factory=lambda n: 'P' * n)

    outcome = await step.run(_context())

    assert outcome.status is StepStatus.SUCCEEDED
    assert outcome.produced_values['organization_id'] == 'org-1'
    assert database_host.passwords['acme-app'] == 'P' * 24
    assert outcome.produced_values['database_url'].startswith('postgresql://postgres.acme-app-ref:PPPP')


@pytest.mark.asyncio
async def test_database_step_configured_organization_overrides_first(database_host):
    step = DatabaseStep(database_host, ScriptedConsole(['valid-token']), organization_id='org-explicit')

    outcome = await step.run(_context())

    assert outcome.produced_values['organization_id'] == 'org-explicit'
    assert ('create_database', 'acme-app', 'org-explicit') in database_host.calls


@pytest.mark.asyncio
async def test_database_step_creation_failure_is_fatal():
    host = InMemoryDatabaseHost(failures={'create_database': CreationError('supabase', 'limit reached')})

    outcome = await DatabaseStep(host, ScriptedConsole(['valid-token'])).run(_context())

    assert outcome.is_fatal_failure
    assert outcome.error_kind is ErrorKind.CREATION
    assert 'limit reached' in outcome.error_detail


@pytest.mark.asyncio
async def test_database_step_transport_failure_is_fatal():
    host = InMemoryDatabaseHost(failures={'authenticate': TransportError('supabase', 'timed out')})

    outcome = await DatabaseStep(host, ScriptedConsole(['valid-token'])).run(_context())

    assert outcome.is_fatal_failure
    assert outcome.error_kind is ErrorKind.TRANSPORT


# ── Deployment ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_deployment_step_links_owner_and_repo(vercel, provisioned_context):
    context = ProvisioningContext(identity=provisioned_context.identity)
    context.record(provisioned_context.outcome('repository'))

    outcome = await DeploymentStep(vercel, ScriptedConsole(['valid-token'])).run(context)

    assert outcome.status is StepStatus.SUCCEEDED
    assert ('create_deployment', 'acme-app', 'octocat/acme-app') in vercel.calls
    assert outcome.produced_values['deploy_url'] == 'https://acme-app.vercel.app'


@pytest.mark.asyncio
async def test_deployment_step_requires_repository(vercel):
    console = ScriptedConsole()

    outcome = await DeploymentStep(vercel, console).run(_context())

    assert outcome.is_fatal_failure
    assert vercel.calls == []
    assert console.prompts == []


# ── Environment ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_environment_step_sets_database_url_and_chosen_keys(vercel, provisioned_context):
    console = ScriptedConsole(['1,2', 'sk-openai', ''])

    outcome = await EnvironmentStep(vercel, console).run(provisioned_context)

    assert outcome.status is StepStatus.SUCCEEDED
    env = vercel.env['prj_acme-app']
    assert env['DATABASE_URL'].startswith('postgresql://')
    assert env['OPENAI_API_KEY'] == 'sk-openai'
    assert 'ANTHROPIC_API_KEY' not in env
    assert outcome.produced_values['skipped_keys'] == ('ANTHROPIC_API_KEY',)
    assert outcome.produced_values['ai_providers'] == ('openai', 'anthropic')


@pytest.mark.asyncio
async def test_environment_step_empty_selection_asks_every_provider(vercel, provisioned_context):
    console = ScriptedConsole(['', 'a', 'b', 'c', 'd'])

    outcome = await EnvironmentStep(vercel, console).run(provisioned_context)

    assert len(console.prompts) == 5
    assert set(outcome.produced_values['configured_keys']) == {
        'DATABASE_URL',
        'OPENAI_API_KEY',
        'ANTHROPIC_API_KEY',
        'GOOGLE_GENERATIVE_AI_API_KEY',
        'GROQ_API_KEY',
    }


@pytest.mark.asyncio
async def test_environment_step_collects_failures_as_warnings(provisioned_context):
    vercel = InMemoryDeploymentHost(env_failures={'ANTHROPIC_API_KEY'})
    console = ScriptedConsole(['1,2', 'k1', 'k2'])

    outcome = await EnvironmentStep(vercel, console).run(provisioned_context)

    assert outcome.status is StepStatus.SUCCEEDED
    assert outcome.produced_values['failed_keys'] == ('ANTHROPIC_API_KEY',)
    assert outcome.produced_values['configured_keys'] == ('DATABASE_URL', 'OPENAI_API_KEY')
    assert len(outcome.warnings) == 1
    assert 'ANTHROPIC_API_KEY' in console.text('warn')


# ── Domain ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_domain_step_default_skips(vercel, provisioned_context):
    outcome = await DomainStep(vercel, ScriptedConsole([''])).run(provisioned_context)

    assert outcome.status is StepStatus.SKIPPED
    assert vercel.calls == []


@pytest.mark.asyncio
async def test_domain_purchase_and_attach(vercel, provisioned_context):
    console = ScriptedConsole(['2', 'myapp.com', 'y'])

    outcome = await DomainStep(vercel, console).run(provisioned_context)

    assert outcome.status is StepStatus.SUCCEEDED
    assert outcome.produced_values['domain_url'] == 'https://myapp.com'
    assert outcome.produced_values['purchased'] is True
    assert vercel.purchased == ['myapp.com']
    assert vercel.attached == {'prj_acme-app': ['myapp.com']}
    assert '$20/year' in console.text('info')


@pytest.mark.asyncio
async def test_unavailable_domain_is_never_purchased(provisioned_context):
    vercel = InMemoryDeploymentHost(unavailable_domains={'taken.com'})

    outcome = await DomainStep(vercel, ScriptedConsole(['2', 'taken.com'])).run(provisioned_context)

    assert outcome.status is StepStatus.FAILED
    assert not outcome.fatal
    assert not vercel.called('purchase_domain')
    assert not vercel.called('get_domain_price')


@pytest.mark.asyncio
async def test_declined_purchase_is_skipped(vercel, provisioned_context):
    outcome = await DomainStep(vercel, ScriptedConsole(['2', 'myapp.com', 'n'])).run(provisioned_context)

    assert outcome.status is StepStatus.SKIPPED
    assert not vercel.called('purchase_domain')


@pytest.mark.asyncio
async def test_purchase_failure_is_non_fatal(provisioned_context):
    vercel = InMemoryDeploymentHost(failures={'purchase_domain': CreationError('vercel', 'payment required')})

    outcome = await DomainStep(vercel, ScriptedConsole(['2', 'myapp.com', 'yes'])).run(provisioned_context)

    assert outcome.status is StepStatus.FAILED
    assert not outcome.is_fatal_failure
    assert not vercel.called('attach_domain')


@pytest.mark.asyncio
async def test_attach_existing_domain_prints_dns_records(vercel, provisioned_context):
    console = ScriptedConsole(['3', 'mine.com'])

    outcome = await DomainStep(vercel, console).run(provisioned_context)

    assert outcome.status is StepStatus.SUCCEEDED
    assert outcome.produced_values['purchased'] is False
    assert not vercel.called('purchase_domain')
    info = console.text('info')
    assert '76.76.21.21' in info
    assert 'cname.vercel-dns.com' in info


@pytest.mark.asyncio
async def test_empty_domain_name_skips(vercel, provisioned_context):
    outcome = await DomainStep(vercel, ScriptedConsole(['3', ''])).run(provisioned_context)
    assert outcome.status is StepStatus.SKIPPED


# ── Tooling ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_tooling_step_disabled_is_skipped(provisioned_context):
    runner = FakeCommandRunner()

    outcome = await ToolingStep(ToolingInstaller(runner), ScriptedConsole(), enabled=False).run(provisioned_context)

    assert outcome.status is StepStatus.SKIPPED
    assert runner.runs == []


@pytest.mark.asyncio
async def test_tooling_step_records_install_failures_as_skipped(provisioned_context):
    runner = FakeCommandRunner(failing=('npm install -g @anthropic-ai/mcp-server-fetch',))

    outcome = await ToolingStep(ToolingInstaller(runner), ScriptedConsole()).run(provisioned_context)

    assert outcome.status is StepStatus.SUCCEEDED
    assert outcome.produced_values['skipped'] == ('MCP fetch',)
    assert outcome.produced_values['agent_installed'] is True
    assert outcome.warnings == ('MCP fetch: skipped',)


class _ThreadRecordingRunner(FakeCommandRunner):
    def __init__(self) -> None:
        super().__init__()
        self.threads: set[int] = set()

    def run(self, args, *, capture=True):
        self.threads.add(threading.get_ident())
        return super().run(args, capture=capture)


@pytest.mark.asyncio
async def test_tooling_installs_run_off_the_event_loop_thread(provisioned_context):
    runner = _ThreadRecordingRunner()

    outcome = await ToolingStep(ToolingInstaller(runner), ScriptedConsole()).run(provisioned_context)

    assert outcome.status is StepStatus.SUCCEEDED
    assert runner.threads
    assert threading.get_ident() not in runner.threads
