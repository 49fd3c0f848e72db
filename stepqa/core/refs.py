"""Deferred lookup tokens.

A step's ``args`` are built when the suite is registered, long before any
request is sent. Tokens stand in for values that only exist once earlier
steps have settled: a published alias, an environment value, or anything
computed from the run context. The queue resolves them right before the
step's action is called.

Example:
    >>> Step(
    ...     name="get_user",
    ...     action=get_user,
    ...     args={"user_id": AliasRef("createUser", "body.id"),
    ...           "token": EnvRef("token", credential=True)},
    ... )
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from stepqa.core.context import RunContext


def lookup_path(value: Any, path: str | None) -> Any:
    """Walk a dotted path (``"body.items.0.id"``) into nested data.

    Mapping keys, integer sequence indices and attributes are supported.

    Raises:
        KeyError: If a path segment does not exist.
    """
    if not path:
        return value

    current = value
    walked: list[str] = []
    for part in path.split("."):
        walked.append(part)
        if isinstance(current, Mapping):
            if part not in current:
                raise KeyError(f"Path '{'.'.join(walked)}' not found")
            current = current[part]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            try:
                current = current[int(part)]
            except (ValueError, IndexError) as e:
                raise KeyError(f"Path '{'.'.join(walked)}' not found") from e
        elif hasattr(current, part):
            current = getattr(current, part)
        else:
            raise KeyError(f"Path '{'.'.join(walked)}' not found")
    return current


class Deferred:
    """Base class for values resolved against the run context at execution time."""

    def resolve(self, ctx: RunContext) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class AliasRef(Deferred):
    """Reference to a value published under an alias.

    Attributes:
        name: Alias name, without the leading ``@``.
        path: Optional dotted path into the published value.
    """

    name: str
    path: str | None = None

    def resolve(self, ctx: RunContext) -> Any:
        return ctx.aliases.value(self.name, self.path)

    def at(self, path: str) -> AliasRef:
        """Reference a dotted path below this one.

        ``AliasRef("createUser").at("body.name")`` equals
        ``AliasRef("createUser", "body.name")``.
        """
        path = path.strip(".")
        if not path:
            return self
        return AliasRef(self.name, f"{self.path}.{path}" if self.path else path)

    def __str__(self) -> str:
        return f"@{self.name}" + (f".{self.path}" if self.path else "")


@dataclass(frozen=True)
class EnvRef(Deferred):
    """Reference to an environment value that must be present.

    Attributes:
        key: Environment key.
        credential: Report a missing value as a missing credential.
    """

    key: str
    credential: bool = False

    def resolve(self, ctx: RunContext) -> Any:
        if self.credential:
            return ctx.env.require_credential(self.key)
        return ctx.env.require(self.key)

    def __str__(self) -> str:
        return f"env.{self.key}"


@dataclass(frozen=True)
class Lazy(Deferred):
    """Compute a value from the run context, e.g. a URL built from an alias."""

    func: Callable[[RunContext], Any]

    def resolve(self, ctx: RunContext) -> Any:
        return self.func(ctx)


def resolve_deferred(value: Any, ctx: RunContext) -> Any:
    """Resolve tokens anywhere inside dicts, lists and tuples."""
    if isinstance(value, Deferred):
        return value.resolve(ctx)
    if isinstance(value, dict):
        return {k: resolve_deferred(v, ctx) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_deferred(v, ctx) for v in value]
    if isinstance(value, tuple):
        return tuple(resolve_deferred(v, ctx) for v in value)
    return value
