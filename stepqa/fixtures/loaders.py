"""Load named fixtures from JSON/YAML files."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

import yaml

from stepqa.errors import FixtureLoadError

logger = logging.getLogger(__name__)

FIXTURE_SUFFIXES = (".json", ".yaml", ".yml")


class FixtureLoader:
    """Load test fixtures by name.

    ``load("newUser")`` looks for ``newUser.json``, ``newUser.yaml`` and
    ``newUser.yml`` under the base path. Parsed files are cached, and every
    call returns a fresh deep copy, so a step may mutate its payload freely
    without affecting other steps or later loads.
    """

    def __init__(self, base_path: str | Path | None = None):
        self.base_path = Path(base_path) if base_path else Path.cwd() / "fixtures"
        self._cache: dict[str, Any] = {}

    def load(self, name: str | Path, use_cache: bool = True) -> Any:
        """Load a fixture and return an independent copy of its data."""
        path = self._resolve_path(name)

        cache_key = str(path)
        if use_cache and cache_key in self._cache:
            return copy.deepcopy(self._cache[cache_key])

        suffix = path.suffix.lower()
        if suffix == ".json":
            data = self._load_json(path)
        elif suffix in (".yaml", ".yml"):
            data = self._load_yaml(path)
        else:
            raise FixtureLoadError(f"Unsupported fixture format: {suffix}")

        logger.debug(f"Loaded fixture {path}")
        if use_cache:
            self._cache[cache_key] = data

        return copy.deepcopy(data)

    def _resolve_path(self, name: str | Path) -> Path:
        path = Path(name)
        if not path.is_absolute():
            path = self.base_path / path

        if path.suffix.lower() in FIXTURE_SUFFIXES:
            if not path.exists():
                raise FixtureLoadError(f"Fixture file not found: {path}")
            return path

        for suffix in FIXTURE_SUFFIXES:
            candidate = path.with_name(path.name + suffix)
            if candidate.exists():
                return candidate

        raise FixtureLoadError(
            f"Fixture '{name}' not found in {self.base_path} "
            f"(tried {', '.join(FIXTURE_SUFFIXES)})"
        )

    def _load_json(self, path: Path) -> Any:
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise FixtureLoadError(f"Invalid JSON in {path}: {e}") from e

    def _load_yaml(self, path: Path) -> Any:
        try:
            with open(path, encoding="utf-8") as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise FixtureLoadError(f"Invalid YAML in {path}: {e}") from e

    def names(self) -> list[str]:
        """List fixture names available under the base path."""
        if not self.base_path.is_dir():
            return []
        return sorted(
            {p.stem for p in self.base_path.iterdir() if p.suffix.lower() in FIXTURE_SUFFIXES}
        )

    def clear_cache(self) -> None:
        self._cache.clear()


class InMemoryFixtureLoader:
    """Fixture loader backed by a dictionary.

    Same copy semantics as FixtureLoader; useful for suites that define
    payloads inline and for tests.
    """

    def __init__(self, fixtures: dict[str, Any] | None = None) -> None:
        self._fixtures: dict[str, Any] = copy.deepcopy(fixtures or {})

    def add(self, name: str, data: Any) -> None:
        self._fixtures[name] = copy.deepcopy(data)

    def load(self, name: str) -> Any:
        if name not in self._fixtures:
            raise FixtureLoadError(f"Fixture '{name}' not found")
        return copy.deepcopy(self._fixtures[name])

    def names(self) -> list[str]:
        return sorted(self._fixtures)
