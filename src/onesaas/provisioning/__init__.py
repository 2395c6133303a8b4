"""Provisioning contracts: context, steps and the workflow driver."""

from .choices import (
    AI_PROVIDERS,
    AIProvider,
    DomainChoice,
    parse_domain_choice,
    parse_provider_selection,
    parse_visibility,
    parse_yes_no,
)
from .context import (
    STEP_DATABASE,
    STEP_DEPLOYMENT,
    STEP_DOMAIN,
    STEP_ENVIRONMENT,
    STEP_REPOSITORY,
    STEP_SEQUENCE,
    STEP_TOOLING,
    ContextHaltedError,
    DuplicateStepError,
    ProvisioningContext,
    StepOutcome,
    StepStatus,
)
from .steps import (
    DatabaseStep,
    DeploymentStep,
    DomainStep,
    EnvironmentStep,
    ProvisioningStep,
    RepositoryStep,
    ToolingStep,
)
from .workflow import ExitCode, ProvisioningWorkflow, WorkflowResult, created_resources

__all__ = [
    'AI_PROVIDERS',
    'AIProvider',
    'ContextHaltedError',
    'DatabaseStep',
    'DeploymentStep',
    'DomainChoice',
    'DomainStep',
    'DuplicateStepError',
    'EnvironmentStep',
    'ExitCode',
    'ProvisioningContext',
    'ProvisioningStep',
    'ProvisioningWorkflow',
    'RepositoryStep',
    'STEP_DATABASE',
    'STEP_DEPLOYMENT',
    'STEP_DOMAIN',
    'STEP_ENVIRONMENT',
    'STEP_REPOSITORY',
    'STEP_SEQUENCE',
    'STEP_TOOLING',
    'StepOutcome',
    'StepStatus',
    'ToolingStep',
    'WorkflowResult',
    'created_resources',
    'parse_domain_choice',
    'parse_provider_selection',
    'parse_visibility',
    'parse_yes_no',
]
