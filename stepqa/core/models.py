"""Core domain models for stepqa.

This module defines the building blocks of a run:
- Step: one deferred unit of work (typically an HTTP call plus assertions)
- Success / Failure: the immutable outcome of a settled step
- StepReport, SuiteReport, RunReport: the structured run report

Example:
    >>> from stepqa.core import Step
    >>>
    >>> def create_user(client, ctx, payload):
    ...     return client.post("/users/add", json=payload)
    >>>
    >>> step = Step(
    ...     name="create_user",
    ...     action=create_user,
    ...     alias="createUser",
    ...     args={"payload": {"firstName": "Ada"}},
    ... )
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StepState(Enum):
    """Lifecycle of a step.

    ``pending -> running -> success | failure``. A step cancelled by a
    fail-fast abort before it started ends in ``skipped``.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (StepState.SUCCESS, StepState.FAILURE, StepState.SKIPPED)


class FailFastScope(Enum):
    """How far a fail-fast abort reaches."""

    SUITE = "suite"
    RUN = "run"


ActionCallable = Callable[..., Any]


@dataclass(frozen=True)
class Success:
    """Outcome of a step whose action returned normally."""

    value: Any

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Outcome of a step whose action raised."""

    error: BaseException

    @property
    def ok(self) -> bool:
        return False


Result = Success | Failure


class Step(BaseModel):
    """A single queued action with optional assertions.

    The action is called as ``action(client, ctx, **args)`` and may be a
    plain function or a coroutine function. Deferred tokens inside ``args``
    (AliasRef, EnvRef, Lazy) are resolved just before the call.

    Attributes:
        name: Step name shown in reports.
        action: Callable performing the work.
        alias: Name under which a successful result is published.
        args: Keyword arguments passed to the action.
        description: Human-readable description.
        expect_failure: Invert the outcome: the step passes only if the
            action fails.
        always_run: Run this step even after a fail-fast abort of its suite.
            Used for teardown hooks.
        id: Order-assigned id, set by the queue on enqueue.
        suite: Owning suite name, set by the runner.
        test: Name of the test case that registered the step.
        hook: ``"before"`` or ``"after"`` for suite hook steps.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="forbid",
        validate_assignment=True,
    )

    name: str = Field(..., min_length=1, max_length=200, description="Step name")
    action: ActionCallable = Field(..., description="Action callable")
    alias: str | None = Field(default=None, description="Alias to publish the result under")
    args: dict[str, Any] = Field(default_factory=dict, description="Action keyword arguments")
    description: str = Field(default="", max_length=500)
    expect_failure: bool = Field(default=False)
    always_run: bool = Field(default=False)
    id: int | None = Field(default=None, ge=0)
    suite: str | None = Field(default=None)
    test: str | None = Field(default=None)
    hook: str | None = Field(default=None)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Step name cannot be empty or whitespace")
        return v.strip()

    @field_validator("alias")
    @classmethod
    def validate_alias(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip().lstrip("@")
        if not v:
            raise ValueError("Alias cannot be empty")
        return v

    @field_validator("action", mode="before")
    @classmethod
    def validate_action(cls, v: Any) -> ActionCallable:
        if not callable(v):
            raise ValueError("Step action must be callable")
        return v

    @field_validator("hook")
    @classmethod
    def validate_hook(cls, v: str | None) -> str | None:
        if v is not None and v not in ("before", "after"):
            raise ValueError("hook must be 'before' or 'after'")
        return v

    @property
    def label(self) -> str:
        """Name with alias, as shown in reports."""
        return f"{self.name} (@{self.alias})" if self.alias else self.name

    def __hash__(self) -> int:
        return hash((self.id, self.name))


class StepReport(BaseModel):
    """Terminal record of one step.

    Attributes:
        id: Order-assigned step id.
        name: Step name.
        alias: Alias the step publishes, if any.
        suite: Owning suite.
        test: Test case that registered the step.
        hook: Hook kind for hook steps.
        state: Terminal state.
        error: Error message for failures and skips.
        error_kind: Failure kind ("assertion", "transport", "status", ...).
        error_code: stepqa error code.
        details: Extra failure details (missing key, expected/actual, ...).
        request: HTTP request summary of the last call made by the step.
        response: HTTP response summary of the last call made by the step.
        started_at: Execution start.
        finished_at: Execution end.
        duration_ms: Duration in milliseconds.
    """

    model_config = ConfigDict(extra="forbid")

    id: int
    name: str
    alias: str | None = None
    suite: str | None = None
    test: str | None = None
    hook: str | None = None
    state: StepState
    error: str | None = None
    error_kind: str | None = None
    error_code: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    request: dict[str, Any] | None = None
    response: dict[str, Any] | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    duration_ms: float = Field(default=0.0, ge=0)

    @property
    def success(self) -> bool:
        return self.state == StepState.SUCCESS

    @property
    def failed(self) -> bool:
        return self.state == StepState.FAILURE

    @property
    def skipped(self) -> bool:
        return self.state == StepState.SKIPPED

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        return {k: v for k, v in data.items() if v not in (None, {})}


class SuiteReport(BaseModel):
    """Steps of one suite's queue, in execution order."""

    model_config = ConfigDict(extra="forbid")

    name: str
    steps: list[StepReport] = Field(default_factory=list)
    aborted: bool = False
    started_at: datetime | None = None
    finished_at: datetime | None = None
    duration_ms: float = Field(default=0.0, ge=0)

    @property
    def success(self) -> bool:
        return not any(s.failed for s in self.steps)

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def passed_steps(self) -> int:
        return sum(1 for s in self.steps if s.success)

    @property
    def failed_steps(self) -> int:
        return sum(1 for s in self.steps if s.failed)

    @property
    def skipped_steps(self) -> int:
        return sum(1 for s in self.steps if s.skipped)

    def get_step(self, name_or_alias: str) -> StepReport | None:
        """Find the first step with the given name or alias."""
        for step in self.steps:
            if step.name == name_or_alias or step.alias == name_or_alias.lstrip("@"):
                return step
        return None

    def tests(self) -> dict[str, list[StepReport]]:
        """Group steps by the test case that registered them."""
        grouped: dict[str, list[StepReport]] = {}
        for step in self.steps:
            key = step.test or (f"{step.hook} hook" if step.hook else "(suite)")
            grouped.setdefault(key, []).append(step)
        return grouped


class RunReport(BaseModel):
    """Structured summary of a whole run, consumed by reporters and the CLI."""

    model_config = ConfigDict(extra="forbid")

    suites: list[SuiteReport] = Field(default_factory=list)
    started_at: datetime
    finished_at: datetime
    duration_ms: float = Field(default=0.0, ge=0)
    fail_fast: bool = False
    fail_fast_scope: FailFastScope = FailFastScope.SUITE

    @property
    def steps(self) -> list[StepReport]:
        return [step for suite in self.suites for step in suite.steps]

    @property
    def success(self) -> bool:
        return all(suite.success for suite in self.suites)

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def passed_steps(self) -> int:
        return sum(1 for s in self.steps if s.success)

    @property
    def failed_steps(self) -> int:
        return sum(1 for s in self.steps if s.failed)

    @property
    def skipped_steps(self) -> int:
        return sum(1 for s in self.steps if s.skipped)

    @property
    def failures(self) -> list[StepReport]:
        return [s for s in self.steps if s.failed]

    def get_suite(self, name: str) -> SuiteReport | None:
        for suite in self.suites:
            if suite.name == name:
                return suite
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert report to a JSON-ready dictionary."""
        return {
            "success": self.success,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "duration_ms": self.duration_ms,
            "fail_fast": self.fail_fast,
            "fail_fast_scope": self.fail_fast_scope.value,
            "total_steps": self.total_steps,
            "passed_steps": self.passed_steps,
            "failed_steps": self.failed_steps,
            "skipped_steps": self.skipped_steps,
            "suites": [
                {
                    "name": suite.name,
                    "success": suite.success,
                    "aborted": suite.aborted,
                    "duration_ms": suite.duration_ms,
                    "steps": [step.to_dict() for step in suite.steps],
                }
                for suite in self.suites
            ],
        }
