"""Run context passed explicitly to every step action."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from stepqa.core.aliases import AliasStore
from stepqa.core.environment import Environment

if TYPE_CHECKING:
    from stepqa.commands import CommandRegistry
    from stepqa.runner.queue import TaskQueue


@dataclass
class RunContext:
    """Everything a step may read or mutate during a run.

    One context lives for one run and is shared by all of its suites.
    Environment and aliases are the only shared mutable state; since only
    one step action runs at a time, no locking is needed.

    Attributes:
        env: Run-scoped environment state.
        aliases: Published step results.
        client: HTTP client collaborator.
        fixtures: Fixture loader collaborator (anything with ``load(name)``).
        commands: Command registry.
        fail_on_status_code: Default status checking for ``request``.
        queue: Queue currently draining; set by the queue while it runs.
    """

    env: Environment = field(default_factory=Environment)
    aliases: AliasStore = field(default_factory=AliasStore)
    client: Any = None
    fixtures: Any = None
    commands: CommandRegistry | None = None
    fail_on_status_code: bool = True
    queue: TaskQueue | None = None

    def alias(self, name: str, path: str | None = None) -> Any:
        """Value published under ``name`` (optionally a dotted path inside it)."""
        return self.aliases.value(name, path)

    def fixture(self, name: str) -> Any:
        """Load a fixture; each call returns an independent copy."""
        if self.fixtures is None:
            raise RuntimeError("No fixture loader configured for this run")
        return self.fixtures.load(name)

    def auth_headers(self, key: str = "token", scheme: str = "Bearer") -> dict[str, str]:
        """Authorization header built from an environment credential.

        Raises:
            MissingCredentialError: If the credential is not set.
        """
        token = self.env.require_credential(key)
        return {"Authorization": f"{scheme} {token}"}

    def request(
        self,
        method: str,
        url: str,
        *,
        auth: bool = False,
        headers: dict[str, str] | None = None,
        fail_on_status_code: bool | None = None,
        **kwargs: Any,
    ) -> Any:
        """Send a request through the client with run defaults applied.

        With ``auth=True`` the bearer token from the environment is attached.
        """
        if self.client is None:
            raise RuntimeError("No HTTP client configured for this run")
        merged = dict(headers or {})
        if auth:
            merged.update(self.auth_headers())
        if fail_on_status_code is None:
            fail_on_status_code = self.fail_on_status_code
        return self.client.request(
            method, url, headers=merged, fail_on_status_code=fail_on_status_code, **kwargs
        )

    def enqueue(self, *args: Any, **kwargs: Any) -> Any:
        """Enqueue a follow-up step on the running queue."""
        if self.queue is None:
            raise RuntimeError("No queue is running")
        return self.queue.enqueue(*args, **kwargs)

    def command(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Invoke a command on the running queue."""
        if self.queue is None:
            raise RuntimeError("No queue is running")
        return self.queue.command(name, *args, **kwargs)

    def snapshot(self) -> dict[str, Any]:
        return {"env": self.env.snapshot(), "aliases": self.aliases.names()}
