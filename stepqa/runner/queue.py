"""Task queue: strictly sequential execution of steps."""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from collections import deque
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any

from stepqa.core.context import RunContext
from stepqa.core.models import (
    ActionCallable,
    Failure,
    Result,
    Step,
    StepReport,
    StepState,
    Success,
    SuiteReport,
)
from stepqa.core.refs import resolve_deferred
from stepqa.errors import CommandError, ErrorCode, ErrorContext, SuiteAbortedError
from stepqa.errors.handlers import ErrorLogger, classify_error

if TYPE_CHECKING:
    from stepqa.commands import StepHandle

logger = logging.getLogger(__name__)


class TaskQueue:
    """Single-threaded FIFO of steps.

    Steps run one at a time in enqueue order. An action may be a coroutine
    function (it is awaited), but the next step never starts before the
    current one settles. Steps enqueued while a step is running are inserted
    right after it, in the order they were enqueued, ahead of the steps that
    were already waiting.

    Every exception raised inside an action is caught at the step boundary
    and recorded as that step's Failure. By default later steps still run;
    with ``fail_fast`` the first failure cancels every step that has not
    started yet, except those marked ``always_run``.

    Example:
        >>> queue = TaskQueue(RunContext(client=client), name="users")
        >>> queue.enqueue(create_user, alias="createUser")
        >>> queue.enqueue(get_user, args={"user_id": AliasRef("createUser", "body.id")})
        >>> report = queue.run()
    """

    def __init__(
        self,
        context: RunContext,
        name: str = "main",
        fail_fast: bool = False,
        ids: Iterator[int] | None = None,
    ) -> None:
        self.context = context
        self.name = name
        self.fail_fast = fail_fast
        self._ids = ids or itertools.count(1)
        self._pending: deque[Step] = deque()
        self._children: list[Step] = []
        self._running: Step | None = None
        self._current_test: str | None = None
        self._current_hook: str | None = None
        self._aborted = False
        self._reports: list[StepReport] = []
        self._results: dict[int, Result] = {}
        self._states: dict[int, StepState] = {}
        self._error_logger = ErrorLogger(__name__)

    # Registration

    def enqueue(
        self,
        action: ActionCallable,
        alias: str | None = None,
        name: str | None = None,
        *,
        args: dict[str, Any] | None = None,
        description: str = "",
        expect_failure: bool = False,
        always_run: bool = False,
    ) -> Step:
        """Wrap ``action`` in a Step and append it to the queue."""
        step = Step(
            name=name or getattr(action, "__name__", "step"),
            action=action,
            alias=alias,
            args=args or {},
            description=description,
            expect_failure=expect_failure,
            always_run=always_run,
        )
        return self.add(step)

    def add(self, step: Step) -> Step:
        """Append a step, assigning its id and ownership.

        The queued copy is returned; the given step is left untouched so a
        step object can be reused.
        """
        update: dict[str, Any] = {"id": next(self._ids), "suite": self.name}
        if self._running is not None:
            update["test"] = step.test or self._running.test
            update["hook"] = step.hook or self._running.hook
            if self._running.always_run:
                update["always_run"] = True
        else:
            update["test"] = step.test or self._current_test
            update["hook"] = step.hook or self._current_hook
            if self._current_hook == "after":
                update["always_run"] = True

        queued = step.model_copy(update=update)
        self._states[queued.id] = StepState.PENDING
        if queued.alias:
            self.context.aliases.declare(queued.alias)

        if self._running is not None:
            self._children.append(queued)
        else:
            self._pending.append(queued)
        logger.debug(f"Enqueued step #{queued.id}: {queued.label}")
        return queued

    def extend(self, steps: Iterable[Step]) -> list[Step]:
        return [self.add(step) for step in steps]

    def command(self, name: str, *args: Any, **kwargs: Any) -> StepHandle:
        """Invoke a registered command, enqueuing the steps it builds."""
        if self.context.commands is None:
            raise CommandError(f"Cannot invoke '{name}': no command registry configured")
        return self.context.commands.invoke(self, name, *args, **kwargs)

    @contextmanager
    def test(self, name: str) -> Iterator[TaskQueue]:
        """Tag every step registered inside the block with a test name."""
        previous = self._current_test
        self._current_test = name
        try:
            yield self
        finally:
            self._current_test = previous

    @contextmanager
    def hook(self, kind: str) -> Iterator[TaskQueue]:
        """Register hook steps; ``after`` hook steps always run."""
        previous = self._current_hook
        self._current_hook = kind
        try:
            yield self
        finally:
            self._current_hook = previous

    # Inspection

    @property
    def pending(self) -> list[Step]:
        """Steps not started yet, in the order they will run."""
        return list(self._pending)

    @property
    def running(self) -> Step | None:
        return self._running

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reports(self) -> list[StepReport]:
        return list(self._reports)

    def state_of(self, step: Step) -> StepState:
        if step.id is None or step.id not in self._states:
            raise KeyError(f"Step '{step.name}' is not owned by queue '{self.name}'")
        return self._states[step.id]

    def result_of(self, step: Step) -> Result | None:
        """Result of a settled step, or None if it has not settled (or was skipped)."""
        if step.id is None:
            return None
        return self._results.get(step.id)

    def __len__(self) -> int:
        return len(self._pending)

    # Execution

    def run(self) -> SuiteReport:
        """Drain the queue and return its report.

        Must not be called from inside a running event loop; use ``arun``
        there.
        """
        return asyncio.run(self.arun())

    async def arun(self) -> SuiteReport:
        """Drain the queue, awaiting asynchronous actions one at a time."""
        started_at = datetime.now()
        logger.info(f"Running queue '{self.name}' ({len(self._pending)} steps)")

        previous_queue = self.context.queue
        self.context.queue = self
        try:
            while self._pending:
                step = self._pending.popleft()

                if self._aborted and not step.always_run:
                    self._skip(step)
                    continue

                report = await self._execute(step)

                if self._children:
                    self._pending.extendleft(reversed(self._children))
                    self._children = []

                if report.failed and self.fail_fast and not self._aborted:
                    logger.error(f"Fail fast triggered on step: {step.name}")
                    self._aborted = True
        finally:
            self.context.queue = previous_queue

        finished_at = datetime.now()
        return SuiteReport(
            name=self.name,
            steps=list(self._reports),
            aborted=self._aborted,
            started_at=started_at,
            finished_at=finished_at,
            duration_ms=(finished_at - started_at).total_seconds() * 1000,
        )

    def cancel(self) -> SuiteReport:
        """Skip every pending step without running any of them."""
        self._aborted = True
        while self._pending:
            self._skip(self._pending.popleft())
        now = datetime.now()
        return SuiteReport(
            name=self.name, steps=list(self._reports), aborted=True, started_at=now, finished_at=now
        )

    def abort(self) -> None:
        """Cancel pending steps at the next step boundary (fail-fast semantics)."""
        self._aborted = True

    async def _execute(self, step: Step) -> StepReport:
        logger.debug(f"Running step: {step.label}")
        self._running = step
        self._states[step.id] = StepState.RUNNING

        history = getattr(self.context.client, "history", None)
        history_len = len(history) if isinstance(history, list) else 0

        started_at = datetime.now()
        outcome: Result
        try:
            args = resolve_deferred(step.args, self.context)
            value = step.action(self.context.client, self.context, **args)
            if inspect.isawaitable(value):
                value = await value
            outcome = Success(value)
        except Exception as e:
            outcome = Failure(e)
        finally:
            self._running = None
        finished_at = datetime.now()

        self._results[step.id] = outcome
        report = self._settle(step, outcome)

        request = response = None
        if isinstance(history, list) and len(history) > history_len:
            last = history[-1]
            request = last.request_summary()
            response = last.response_summary()

        report = report.model_copy(
            update={
                "request": request,
                "response": response,
                "started_at": started_at,
                "finished_at": finished_at,
                "duration_ms": (finished_at - started_at).total_seconds() * 1000,
            }
        )
        self._reports.append(report)
        return report

    def _settle(self, step: Step, outcome: Result) -> StepReport:
        aliases = self.context.aliases
        base = {
            "id": step.id,
            "name": step.name,
            "alias": step.alias,
            "suite": step.suite,
            "test": step.test,
            "hook": step.hook,
        }

        if isinstance(outcome, Failure):
            info = classify_error(outcome.error)
            if step.alias:
                aliases.mark_failed(step.alias, step.name)
            if step.expect_failure:
                logger.debug(f"Step {step.name} failed as expected: {info.message}")
                self._states[step.id] = StepState.SUCCESS
                return StepReport(
                    **base,
                    state=StepState.SUCCESS,
                    details={"expected_failure": info.message, "error_kind": info.kind},
                )
            self._states[step.id] = StepState.FAILURE
            self._error_logger.log_warning(
                outcome.error,
                ErrorContext(suite_name=step.suite, test_name=step.test, step_name=step.name),
            )
            return StepReport(
                **base,
                state=StepState.FAILURE,
                error=info.message,
                error_kind=info.kind,
                error_code=info.code,
                details=info.details,
            )

        if step.expect_failure:
            if step.alias:
                aliases.mark_failed(step.alias, step.name)
            self._states[step.id] = StepState.FAILURE
            return StepReport(
                **base,
                state=StepState.FAILURE,
                error="Expected failure but step succeeded",
                error_kind="assertion",
                error_code=ErrorCode.ASSERTION_FAILED.value,
            )

        if step.alias:
            aliases.publish(step.alias, outcome)
        self._states[step.id] = StepState.SUCCESS
        return StepReport(**base, state=StepState.SUCCESS)

    def _skip(self, step: Step) -> None:
        if step.alias:
            self.context.aliases.withdraw(step.alias)
        self._states[step.id] = StepState.SKIPPED
        error = SuiteAbortedError()
        logger.debug(f"Skipping step: {step.label}")
        self._reports.append(
            StepReport(
                id=step.id,
                name=step.name,
                alias=step.alias,
                suite=step.suite,
                test=step.test,
                hook=step.hook,
                state=StepState.SKIPPED,
                error=error.message,
                error_kind=error.kind,
                error_code=error.error_code.value,
            )
        )
