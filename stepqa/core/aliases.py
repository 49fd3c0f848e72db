"""Alias store: publish a step's result under a name, resolve it later."""

from __future__ import annotations

import copy
import logging
from typing import Any

from stepqa.core.models import Failure, Result, Success
from stepqa.core.refs import AliasRef, lookup_path
from stepqa.errors import NotYetSettledError, UnknownAliasError

logger = logging.getLogger(__name__)


def _detached(value: Any) -> Any:
    """Deep copy of ``value``; values that cannot be copied are shared as is."""
    try:
        return copy.deepcopy(value)
    except (TypeError, copy.Error) as e:
        logger.debug(f"Alias value of type {type(value).__name__} is shared, not copied: {e}")
        return value


class AliasStore:
    """Per-run mapping from alias name to the last published result.

    The queue declares an alias when a step carrying it is enqueued and
    publishes on success. Only settled results are ever visible: resolving
    an alias whose step is still pending raises NotYetSettledError, and
    resolving a name nobody declared raises UnknownAliasError.

    Re-publishing a name overwrites the previous result. There is no history.
    Published values are immutable: the store deep-copies on publish and on
    every read.
    """

    def __init__(self) -> None:
        self._published: dict[str, Success] = {}
        self._pending: dict[str, int] = {}
        self._failed: dict[str, str] = {}

    @staticmethod
    def _normalize(name: str) -> str:
        return name.strip().lstrip("@")

    def declare(self, name: str) -> None:
        """Record that an enqueued step will publish under ``name``."""
        name = self._normalize(name)
        self._pending[name] = self._pending.get(name, 0) + 1

    def publish(self, name: str, result: Result | Any) -> None:
        """Publish a result under ``name``.

        Non-Result values are wrapped in Success. Publishing a Failure is
        rejected: only successful results are addressable.
        """
        name = self._normalize(name)
        if isinstance(result, Failure):
            raise ValueError(f"Cannot publish a failure under alias '@{name}'")
        value = result.value if isinstance(result, Success) else result

        self._settle(name)
        self._failed.pop(name, None)
        self._published[name] = Success(_detached(value))
        logger.debug(f"Published alias @{name}")

    def mark_failed(self, name: str, step_name: str) -> None:
        """Settle a declared alias whose step failed without publishing."""
        name = self._normalize(name)
        self._settle(name)
        if name not in self._published:
            self._failed[name] = step_name

    def withdraw(self, name: str) -> None:
        """Drop a pending declaration for a step that will never run."""
        self._settle(self._normalize(name))

    def _settle(self, name: str) -> None:
        count = self._pending.get(name, 0)
        if count <= 1:
            self._pending.pop(name, None)
        else:
            self._pending[name] = count - 1

    def resolve(self, name: str) -> Success:
        """Return the most recent result published under ``name``.

        The store keeps its own copy of every published value and hands out
        copies, so a reader mutating what it got never changes what the next
        reader sees.

        Raises:
            UnknownAliasError: The name was never published (or its step failed).
            NotYetSettledError: The publishing step has not settled yet.
        """
        name = self._normalize(name)
        if name in self._published:
            return Success(_detached(self._published[name].value))
        if name in self._pending:
            raise NotYetSettledError(name)
        if name in self._failed:
            raise UnknownAliasError(
                name,
                f"Alias '@{name}' was not published: step '{self._failed[name]}' failed",
            )
        raise UnknownAliasError(name)

    def value(self, name: str, path: str | None = None) -> Any:
        """Return the published value, or a dotted path inside it."""
        return lookup_path(self.resolve(name).value, path)

    def ref(self, name: str, path: str | None = None) -> AliasRef:
        """Create a deferred token for ``name``."""
        return AliasRef(self._normalize(name), path)

    def is_published(self, name: str) -> bool:
        return self._normalize(name) in self._published

    def names(self) -> list[str]:
        return list(self._published)

    def clear(self) -> None:
        self._published.clear()
        self._pending.clear()
        self._failed.clear()

    def __contains__(self, name: str) -> bool:
        return self.is_published(name)

    def __len__(self) -> int:
        return len(self._published)
