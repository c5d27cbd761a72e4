"""Saga/Compensation module for multi-collection writes without a shared transaction.

A contact merge writes to several independently owned collections. Each
write is a saga step paired with a compensation; when any step fails, the
executor compensates so that no partial effect remains.

Design:
- SagaStep: Individual write with a compensation action
- SagaExecutor: Runs steps in order, compensates in reverse on failure
- compensate_on_failure: a step whose own failure may leave partial writes
  (e.g. a bulk repoint that stopped halfway) is compensated too, not only
  the steps that completed before it
- Fail-closed: Any failure triggers compensation; compensation failures are
  logged and reported, never swallowed
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SagaStepStatus(StrEnum):
    """Status of a saga step."""

    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"
    COMPENSATING = "compensating"
    COMPENSATED = "compensated"
    COMPENSATION_FAILED = "compensation_failed"


class SagaStatus(StrEnum):
    """Overall outcome of a saga execution."""

    COMPLETED = "completed"
    COMPENSATED = "compensated"
    COMPENSATION_FAILED = "compensation_failed"


@dataclass
class SagaStepResult:
    """Result of executing a saga step."""

    step_name: str
    status: SagaStepStatus
    result: Any = None
    error: Exception | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


@dataclass
class SagaResult:
    """Result of executing a complete saga."""

    saga_id: str
    status: SagaStatus
    step_results: list[SagaStepResult] = field(default_factory=list)
    error: Exception | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_success(self) -> bool:
        """Check if saga completed successfully."""
        return self.status == SagaStatus.COMPLETED

    @property
    def is_compensated(self) -> bool:
        """Check if saga was compensated (rolled back)."""
        return self.status == SagaStatus.COMPENSATED

    @property
    def failed_step(self) -> str | None:
        """Name of the step whose failure aborted the saga, if any."""
        for step_result in self.step_results:
            if step_result.status == SagaStepStatus.FAILED:
                return step_result.step_name
        return None


class SagaStep(ABC, Generic[T]):
    """Abstract base class for a saga step.

    Each step must implement:
    - execute(): Perform the forward action
    - compensate(): Undo the action if the saga fails
    """

    def __init__(self, name: str, *, compensate_on_failure: bool = False) -> None:
        """Initialize the step.

        Args:
            name: Human-readable name for logging/debugging.
            compensate_on_failure: Also compensate this step when its own
                execute() raises. compensate() then receives result=None.
        """
        self.name = name
        self.compensate_on_failure = compensate_on_failure

    @abstractmethod
    def execute(self, context: dict[str, Any]) -> T:
        """Execute the forward action.

        Args:
            context: Shared context dictionary for passing data between steps.

        Returns:
            Result of the step execution.

        Raises:
            Exception: If execution fails.
        """

    @abstractmethod
    def compensate(self, context: dict[str, Any], result: T | None) -> None:
        """Compensate (undo) the action.

        Args:
            context: Shared context dictionary.
            result: Result from execute(), or None if execute() itself failed.
        """


class CallableStep(SagaStep[T]):
    """Saga step built from plain callables.

    A step with no compensation function is a pure check (e.g. a
    post-condition) and compensates as a no-op.
    """

    def __init__(
        self,
        name: str,
        execute_fn: Callable[[dict[str, Any]], T],
        compensate_fn: Callable[[dict[str, Any], T | None], None] | None = None,
        *,
        compensate_on_failure: bool = False,
    ) -> None:
        super().__init__(name, compensate_on_failure=compensate_on_failure)
        self._execute_fn = execute_fn
        self._compensate_fn = compensate_fn

    def execute(self, context: dict[str, Any]) -> T:
        return self._execute_fn(context)

    def compensate(self, context: dict[str, Any], result: T | None) -> None:
        if self._compensate_fn is not None:
            self._compensate_fn(context, result)


class SagaExecutor:
    """Executor for sagas spanning several in-memory collections.

    - Steps run in insertion order, uninterrupted
    - On the first failure, completed steps (plus the failed step when it
      opts in via compensate_on_failure) are compensated in reverse order
    - All compensation actions are attempted even if some fail
    """

    def __init__(self, saga_id: str) -> None:
        """Initialize the saga executor.

        Args:
            saga_id: Unique identifier for this saga execution.
        """
        self.saga_id = saga_id
        self._steps: list[SagaStep[Any]] = []
        self._step_results: list[SagaStepResult] = []
        self._context: dict[str, Any] = {}

    def add_step(self, step: SagaStep[Any]) -> SagaExecutor:
        """Add a step to the saga. Returns self for chaining."""
        self._steps.append(step)
        return self

    def add(
        self,
        name: str,
        execute_fn: Callable[[dict[str, Any]], Any],
        compensate_fn: Callable[[dict[str, Any], Any], None] | None = None,
        *,
        compensate_on_failure: bool = False,
    ) -> SagaExecutor:
        """Add a CallableStep.

        Args:
            name: Step name.
            execute_fn: Forward action.
            compensate_fn: Undo action; None for pure checks.
            compensate_on_failure: Compensate even if this step fails.

        Returns:
            Self for chaining.
        """
        step: CallableStep[Any] = CallableStep(
            name, execute_fn, compensate_fn, compensate_on_failure=compensate_on_failure
        )
        return self.add_step(step)

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self._steps]

    def execute(self, initial_context: dict[str, Any] | None = None) -> SagaResult:
        """Execute the saga with all steps.

        Args:
            initial_context: Initial context data to pass to steps.

        Returns:
            SagaResult with overall status and per-step results.
        """
        self._context = initial_context if initial_context is not None else {}
        self._step_results = []

        started_at = datetime.now(UTC)
        completed_steps: list[tuple[SagaStep[Any], Any]] = []

        logger.info("Starting saga %s with %d steps", self.saga_id, len(self._steps))

        for step in self._steps:
            step_result = SagaStepResult(
                step_name=step.name,
                status=SagaStepStatus.EXECUTING,
                started_at=datetime.now(UTC),
            )

            try:
                result = step.execute(self._context)
            except Exception as e:
                step_result.status = SagaStepStatus.FAILED
                step_result.error = e
                step_result.completed_at = datetime.now(UTC)
                self._step_results.append(step_result)
                logger.error("Step %s of saga %s failed: %s", step.name, self.saga_id, e)

                to_compensate = list(completed_steps)
                if step.compensate_on_failure:
                    to_compensate.append((step, None))
                compensation_status = self._compensate(to_compensate)

                return SagaResult(
                    saga_id=self.saga_id,
                    status=compensation_status,
                    step_results=self._step_results,
                    error=e,
                    started_at=started_at,
                    completed_at=datetime.now(UTC),
                )

            step_result.status = SagaStepStatus.COMPLETED
            step_result.result = result
            step_result.completed_at = datetime.now(UTC)
            completed_steps.append((step, result))
            self._step_results.append(step_result)
            logger.debug("Step %s completed successfully", step.name)

        logger.info("Saga %s completed successfully", self.saga_id)
        return SagaResult(
            saga_id=self.saga_id,
            status=SagaStatus.COMPLETED,
            step_results=self._step_results,
            started_at=started_at,
            completed_at=datetime.now(UTC),
        )

    def _compensate(self, steps: list[tuple[SagaStep[Any], Any]]) -> SagaStatus:
        """Compensate steps in reverse order.

        Returns:
            COMPENSATED if all compensations succeeded, COMPENSATION_FAILED otherwise.
        """
        logger.info("Compensating %d step(s) of saga %s", len(steps), self.saga_id)
        all_compensated = True

        for step, result in reversed(steps):
            comp_result = SagaStepResult(
                step_name=f"{step.name}_compensation",
                status=SagaStepStatus.COMPENSATING,
                started_at=datetime.now(UTC),
            )

            try:
                step.compensate(self._context, result)
                comp_result.status = SagaStepStatus.COMPENSATED
                logger.debug("Compensated step %s", step.name)
            except Exception as e:
                comp_result.status = SagaStepStatus.COMPENSATION_FAILED
                comp_result.error = e
                all_compensated = False
                logger.error("Compensation failed for step %s: %s", step.name, e)

            comp_result.completed_at = datetime.now(UTC)
            self._step_results.append(comp_result)

        return SagaStatus.COMPENSATED if all_compensated else SagaStatus.COMPENSATION_FAILED
