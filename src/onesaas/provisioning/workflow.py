"""Provisioning workflow driver.

Runs the fixed step list strictly in order against one
``ProvisioningContext``. Step N+1 never starts before step N's outcome is
recorded. The first fatal failure ends the run with exit code 1; remote
resources created by earlier steps are left in place and listed for the
operator to remove by hand.

``on_cloud_ready`` is called once after the domain step, before local
tooling, so the secrets file and project documents exist even when tooling
is skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Sequence

from ..errors import ProviderError
from ..protocols import Console
from .context import (
    STEP_DATABASE,
    STEP_DEPLOYMENT,
    STEP_REPOSITORY,
    STEP_TOOLING,
    ProvisioningContext,
    StepOutcome,
)
from .steps import ProvisioningStep

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    OK = 0
    FAILURE = 1
    INTERRUPTED = 130


# (step, produced value, label) for resources a fatal failure leaves behind.
_CREATED_RESOURCES = (
    (STEP_REPOSITORY, 'repository_url', 'GitHub repository'),
    (STEP_DATABASE, 'dashboard_url', 'Supabase project'),
    (STEP_DEPLOYMENT, 'dashboard_url', 'Vercel project'),
)


@dataclass(frozen=True, slots=True)
class WorkflowResult:
    context: ProvisioningContext
    completed: bool
    failed_step: str | None = None

    @property
    def exit_code(self) -> ExitCode:
        return ExitCode.OK if self.completed else ExitCode.FAILURE

    @property
    def outcomes(self) -> tuple[StepOutcome, ...]:
        return self.context.step_results


def created_resources(context: ProvisioningContext) -> list[tuple[str, str]]:
    """(label, url) of every remote resource created so far."""
    resources = []
    for step_name, key, label in _CREATED_RESOURCES:
        if context.succeeded(step_name):
            resources.append((label, context.value(step_name, key)))
    return resources


class ProvisioningWorkflow:
    """Sequences provisioning steps and enforces the failure contract."""

    def __init__(
        self,
        steps: Sequence[ProvisioningStep],
        console: Console,
        *,
        on_cloud_ready: Callable[[ProvisioningContext], None] | None = None,
    ) -> None:
        names = [step.name for step in steps]
        if len(set(names)) != len(names):
            raise ValueError(f'duplicate step names: {names}')
        self._steps = tuple(steps)
        self._console = console
        self._on_cloud_ready = on_cloud_ready

    @property
    def steps(self) -> tuple[ProvisioningStep, ...]:
        return self._steps

    async def run(self, context: ProvisioningContext) -> WorkflowResult:
        total = len(self._steps)
        ready_notified = False

        for index, step in enumerate(self._steps, start=1):
            if step.name == STEP_TOOLING and not ready_notified:
                self._notify_cloud_ready(context)
                ready_notified = True

            self._console.step(index, total, step.title)
            logger.info('Step started: %s (%d/%d)', step.name, index, total)
            outcome = context.record(await self._run_step(step, context))
            logger.info('Step finished: %s status=%s', step.name, outcome.status.value)

            if outcome.is_fatal_failure:
                self._report_abort(context, outcome)
                return WorkflowResult(
                    context=context,
                    completed=False,
                    failed_step=step.name,
                )

        if not ready_notified:
            self._notify_cloud_ready(context)
        return WorkflowResult(context=context, completed=True)

    async def _run_step(
        self,
        step: ProvisioningStep,
        context: ProvisioningContext,
    ) -> StepOutcome:
        # Steps convert provider errors themselves; this only guards a step
        # that lets one escape so the outcome is still recorded.
        try:
            return await step.run(context)
        except ProviderError as exc:
            logger.warning('Step %s raised %r', step.name, exc)
            return StepOutcome.failed(
                step.name, kind=exc.kind, detail=str(exc), fatal=step.fatal,
            )

    def _notify_cloud_ready(self, context: ProvisioningContext) -> None:
        if self._on_cloud_ready is not None:
            self._on_cloud_ready(context)

    def _report_abort(self, context: ProvisioningContext, outcome: StepOutcome) -> None:
        console = self._console
        console.error(f'Setup aborted at step {outcome.step_name!r}: {outcome.error_detail}')
        logger.error(
            'Workflow aborted: step=%s kind=%s',
            outcome.step_name,
            outcome.error_kind.value if outcome.error_kind else None,
        )

        resources = created_resources(context)
        if not resources:
            return
        console.warn('These resources were already created and have NOT been removed:')
        for label, url in resources:
            console.info(f'  {label}: {url}')
        console.dim('Delete or reuse them manually before running setup again.')
