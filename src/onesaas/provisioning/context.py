"""Provisioning run state: step outcomes and the accumulating context.

The pipeline is a fixed sequence:
  repository -> database -> deployment -> environment -> domain -> tooling

Each step appends exactly one ``StepOutcome``. Outcomes are immutable and the
log is append-only. A failed outcome flagged ``fatal`` halts the context:
nothing can be appended afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from ..errors import ErrorKind
from ..identity import ProjectIdentity

STEP_REPOSITORY = 'repository'
STEP_DATABASE = 'database'
STEP_DEPLOYMENT = 'deployment'
STEP_ENVIRONMENT = 'environment'
STEP_DOMAIN = 'domain'
STEP_TOOLING = 'tooling'

STEP_SEQUENCE = (
    STEP_REPOSITORY,
    STEP_DATABASE,
    STEP_DEPLOYMENT,
    STEP_ENVIRONMENT,
    STEP_DOMAIN,
    STEP_TOOLING,
)

_EMPTY: Mapping[str, Any] = MappingProxyType({})


class StepStatus(str, Enum):
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    SKIPPED = 'skipped'


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """Result of one provisioning step.

    ``produced_values`` is only populated on success; ``error_kind`` and
    ``error_detail`` only on failure. Use the ``succeeded``/``failed``/
    ``skipped`` constructors.
    """

    step_name: str
    status: StepStatus
    produced_values: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    error_kind: ErrorKind | None = None
    error_detail: str | None = None
    fatal: bool = False
    warnings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.status is StepStatus.FAILED:
            if not self.error_detail:
                raise ValueError('failed outcome requires error_detail')
        elif self.error_detail is not None or self.error_kind is not None:
            raise ValueError(f'{self.status.value} outcome cannot carry an error')
        if self.status is not StepStatus.SUCCEEDED and self.produced_values:
            raise ValueError('only succeeded outcomes carry produced values')
        if self.fatal and self.status is not StepStatus.FAILED:
            raise ValueError('only failed outcomes can be fatal')

    @classmethod
    def succeeded(
        cls,
        step_name: str,
        values: Mapping[str, Any] | None = None,
        *,
        warnings: tuple[str, ...] = (),
    ) -> StepOutcome:
        return cls(
            step_name=step_name,
            status=StepStatus.SUCCEEDED,
            produced_values=MappingProxyType(dict(values or {})),
            warnings=warnings,
        )

    @classmethod
    def failed(
        cls,
        step_name: str,
        *,
        kind: ErrorKind,
        detail: str,
        fatal: bool,
        warnings: tuple[str, ...] = (),
    ) -> StepOutcome:
        return cls(
            step_name=step_name,
            status=StepStatus.FAILED,
            error_kind=kind,
            error_detail=detail,
            fatal=fatal,
            warnings=warnings,
        )

    @classmethod
    def skipped(cls, step_name: str, *, warnings: tuple[str, ...] = ()) -> StepOutcome:
        return cls(step_name=step_name, status=StepStatus.SKIPPED, warnings=warnings)

    @property
    def is_fatal_failure(self) -> bool:
        return self.status is StepStatus.FAILED and self.fatal


class ContextHaltedError(RuntimeError):
    """Raised when appending to a context halted by a fatal failure."""


class DuplicateStepError(ValueError):
    """Raised when a step records a second outcome."""


@dataclass(slots=True)
class ProvisioningContext:
    """Accumulating state of one workflow run.

    ``credentials`` stay in process memory only and are never rendered by
    ``repr``.
    """

    identity: ProjectIdentity
    credentials: dict[str, str] = field(default_factory=dict)
    _results: list[StepOutcome] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            'ProvisioningContext('
            f'identity={self.identity!r}, '
            f'credentials=<redacted:{sorted(self.credentials)}>, '
            f'step_results={[(o.step_name, o.status.value) for o in self._results]!r})'
        )

    @property
    def step_results(self) -> tuple[StepOutcome, ...]:
        return tuple(self._results)

    @property
    def halted(self) -> bool:
        return any(o.is_fatal_failure for o in self._results)

    def record(self, outcome: StepOutcome) -> StepOutcome:
        """Append ``outcome`` to the log."""
        if self.halted:
            raise ContextHaltedError(
                f'cannot record {outcome.step_name!r}: run halted by a fatal failure'
            )
        if outcome.step_name not in STEP_SEQUENCE:
            raise ValueError(f'unknown step {outcome.step_name!r}')
        if self.outcome(outcome.step_name) is not None:
            raise DuplicateStepError(f'step {outcome.step_name!r} already recorded')
        self._results.append(outcome)
        return outcome

    def outcome(self, step_name: str) -> StepOutcome | None:
        for result in self._results:
            if result.step_name == step_name:
                return result
        return None

    def value(self, step_name: str, key: str) -> Any:
        """Produced value of a succeeded step.

        Raises:
            KeyError: The step did not succeed or did not produce ``key``.
        """
        result = self.outcome(step_name)
        if result is None or result.status is not StepStatus.SUCCEEDED:
            raise KeyError(f'step {step_name!r} has not succeeded')
        return result.produced_values[key]

    def succeeded(self, step_name: str) -> bool:
        result = self.outcome(step_name)
        return result is not None and result.status is StepStatus.SUCCEEDED
