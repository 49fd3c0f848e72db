"""Suites: named groups of test cases with before/after hooks."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stepqa.runner.queue import TaskQueue

SuiteBody = Callable[["TaskQueue"], None]


class Suite:
    """A suite registers its steps onto its own queue.

    Hook and test bodies receive the suite's TaskQueue and only enqueue
    steps; they never send requests or touch shared state themselves.
    Everything that does happens inside a step, so the single-runner
    guarantee covers hooks too. ``after`` hook steps run even when a
    fail-fast abort cancelled the rest of the suite.

    Example:
        >>> users = Suite("users")
        >>>
        >>> @users.before
        ... def authenticate(q):
        ...     q.command("login")
        >>>
        >>> @users.it("creates a user")
        ... def create(q):
        ...     q.command("request", "POST", "/users/add", fixture="newUser",
        ...               auth=True, alias="createUser", expected_status=201)
    """

    def __init__(self, name: str, description: str = "") -> None:
        if not name or not name.strip():
            raise ValueError("Suite name cannot be empty")
        self.name = name.strip()
        self.description = description
        self._before: list[SuiteBody] = []
        self._after: list[SuiteBody] = []
        self._tests: list[tuple[str, SuiteBody]] = []

    def before(self, body: SuiteBody) -> SuiteBody:
        self._before.append(body)
        return body

    def after(self, body: SuiteBody) -> SuiteBody:
        self._after.append(body)
        return body

    def it(self, name: str) -> Callable[[SuiteBody], SuiteBody]:
        """Register a test case."""

        def decorator(body: SuiteBody) -> SuiteBody:
            self.add_test(name, body)
            return body

        return decorator

    def add_test(self, name: str, body: SuiteBody) -> None:
        if any(existing == name for existing, _ in self._tests):
            raise ValueError(f"Suite '{self.name}' already has a test named '{name}'")
        self._tests.append((name, body))

    @property
    def test_names(self) -> list[str]:
        return [name for name, _ in self._tests]

    def register(self, queue: TaskQueue) -> None:
        """Enqueue hooks and tests in order: before, tests, after."""
        with queue.hook("before"):
            for body in self._before:
                body(queue)
        for name, body in self._tests:
            with queue.test(name):
                body(queue)
        with queue.hook("after"):
            for body in self._after:
                body(queue)

    def __repr__(self) -> str:
        return f"Suite({self.name!r}, tests={len(self._tests)})"
