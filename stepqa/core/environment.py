"""Run-scoped environment state (credentials, tokens, base URL)."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

from stepqa.errors import MissingCredentialError, MissingEnvironmentValueError

if TYPE_CHECKING:
    from stepqa.config import QAConfig

logger = logging.getLogger(__name__)


class _Missing:
    """Sentinel type for unset environment keys."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class Environment:
    """Key-value store shared by every step of a run.

    Seeded at run start from configuration and mutated by steps (the login
    command stores the token here). A value set by one step is visible to
    every step that runs after it, including steps of later suites.

    ``get`` never raises on an unset key; it returns ``MISSING`` (or the
    given default). Steps that cannot work without a value use ``require``
    or ``require_credential``, which raise.

    Example:
        >>> env = Environment({"username": "emilys"})
        >>> env.get("token") is MISSING
        True
        >>> env.set("token", "abc")
        >>> env.require_credential("token")
        'abc'
    """

    def __init__(self, seed: Mapping[str, Any] | None = None) -> None:
        self._seed: dict[str, Any] = dict(seed or {})
        self._data: dict[str, Any] = dict(self._seed)

    @classmethod
    def from_config(cls, config: QAConfig) -> Environment:
        """Seed from configuration: base_url, login_path and every entry of ``env``."""
        seed: dict[str, Any] = {"base_url": config.base_url, "login_path": config.login_path}
        seed.update(config.env)
        return cls(seed)

    def get(self, key: str, default: Any = MISSING) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        logger.debug(f"Environment value set: {key}")
        self._data[key] = value

    def unset(self, key: str) -> None:
        self._data.pop(key, None)

    def require(self, key: str) -> Any:
        """Return the value for ``key``.

        Raises:
            MissingEnvironmentValueError: If the key is unset or None.
        """
        value = self._data.get(key, MISSING)
        if value is MISSING or value is None:
            raise MissingEnvironmentValueError(key)
        return value

    def require_credential(self, key: str) -> Any:
        """Like ``require`` but reports the missing key as a credential."""
        value = self._data.get(key, MISSING)
        if value is MISSING or value is None or value == "":
            raise MissingCredentialError(key)
        return value

    def seed(self, values: Mapping[str, Any]) -> None:
        """Add values to both the seed and the current state."""
        self._seed.update(values)
        self._data.update(values)

    def reset(self) -> None:
        """Drop everything set during the run and restore the seed."""
        self._data = dict(self._seed)

    def snapshot(self) -> dict[str, Any]:
        return dict(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> Any:
        return self.require(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)
