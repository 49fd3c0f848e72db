"""Registry of reusable, composable step-producing commands."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from stepqa.core.models import Step, Success
from stepqa.core.refs import AliasRef
from stepqa.errors import CommandError, UnknownCommandError

if TYPE_CHECKING:
    from stepqa.core.context import RunContext
    from stepqa.runner.queue import TaskQueue

logger = logging.getLogger(__name__)

CommandFactory = Callable[..., "Step | Iterable[Step]"]


@dataclass(frozen=True)
class StepHandle:
    """What a command invocation hands back to its caller.

    Attributes:
        command: Name of the invoked command.
        alias: Alias of the command's final step.
        steps: The queued steps, in order.
    """

    command: str
    alias: str
    steps: tuple[Step, ...]

    def ref(self, path: str | None = None) -> AliasRef:
        """Deferred token for the final step's result."""
        return AliasRef(self.alias, path)

    def resolve(self, ctx: RunContext) -> Success:
        return ctx.aliases.resolve(self.alias)

    def value(self, ctx: RunContext, path: str | None = None) -> Any:
        return ctx.aliases.value(self.alias, path)


class CommandRegistry:
    """Named step factories.

    A factory is called as ``factory(registry, *args, **kwargs)`` and returns
    a Step or an iterable of Steps. Building does no I/O, so the steps a
    command produces can be inspected without running anything. Factories
    compose by calling ``registry.build(other_name, ...)`` and including
    the returned steps.

    Example:
        >>> registry = CommandRegistry()
        >>>
        >>> @registry.command("create_user")
        ... def create_user(commands, payload):
        ...     return [
        ...         *commands.build("login"),
        ...         Step(name="create_user", action=post_user,
        ...              alias="createUser", args={"payload": payload}),
        ...     ]
        >>>
        >>> [s.name for s in registry.build("create_user", {"firstName": "Ada"})]
        ['login', 'create_user']
    """

    def __init__(self) -> None:
        self._commands: dict[str, CommandFactory] = {}
        self._building: list[str] = []

    def register(self, name: str, factory: CommandFactory, replace: bool = False) -> None:
        if not name or not name.strip():
            raise CommandError("Command name cannot be empty")
        if not callable(factory):
            raise CommandError(f"Factory for command '{name}' must be callable")
        if name in self._commands and not replace:
            raise CommandError(f"Command '{name}' is already registered")
        self._commands[name] = factory
        logger.debug(f"Registered command: {name}")

    def command(self, name: str | None = None, replace: bool = False) -> Callable[[CommandFactory], CommandFactory]:
        """Decorator form of ``register``; defaults to the function name."""

        def decorator(factory: CommandFactory) -> CommandFactory:
            self.register(name or factory.__name__, factory, replace=replace)
            return factory

        return decorator

    def unregister(self, name: str) -> None:
        self._commands.pop(name, None)

    def get(self, name: str) -> CommandFactory:
        if name not in self._commands:
            raise UnknownCommandError(name, available=list(self._commands))
        return self._commands[name]

    def names(self) -> list[str]:
        return sorted(self._commands)

    def copy(self) -> CommandRegistry:
        clone = CommandRegistry()
        clone._commands = dict(self._commands)
        return clone

    def __contains__(self, name: str) -> bool:
        return name in self._commands

    def build(self, name: str, *args: Any, **kwargs: Any) -> list[Step]:
        """Run the factory and return its steps without enqueuing them.

        Raises:
            UnknownCommandError: If no command is registered under ``name``.
            CommandError: On recursive composition or if the factory
                returns something other than steps.
        """
        factory = self.get(name)
        if name in self._building:
            chain = " -> ".join([*self._building, name])
            raise CommandError(f"Recursive command composition: {chain}")

        self._building.append(name)
        try:
            produced = factory(self, *args, **kwargs)
        finally:
            self._building.pop()

        steps = [produced] if isinstance(produced, Step) else list(produced or [])
        if not steps:
            raise CommandError(f"Command '{name}' produced no steps")
        for step in steps:
            if not isinstance(step, Step):
                raise CommandError(
                    f"Command '{name}' produced {type(step).__name__}, expected Step"
                )
        return steps

    def invoke(self, queue: TaskQueue, name: str, *args: Any, **kwargs: Any) -> StepHandle:
        """Build the command's steps and enqueue them on ``queue``.

        The final step gets the command name as alias if it has none, so the
        returned handle can always be resolved once the step settles.
        """
        steps = self.build(name, *args, **kwargs)
        if steps[-1].alias is None:
            steps[-1] = steps[-1].model_copy(update={"alias": name})

        queued = queue.extend(steps)
        logger.debug(f"Invoked command {name}: {len(queued)} step(s)")
        return StepHandle(command=name, alias=queued[-1].alias, steps=tuple(queued))
