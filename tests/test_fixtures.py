"""Tests for fixture loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from stepqa.errors import FixtureLoadError
from stepqa.fixtures import FixtureLoader, InMemoryFixtureLoader


@pytest.fixture
def fixtures_dir(tmp_path: Path) -> Path:
    (tmp_path / "newUser.json").write_text(
        json.dumps({"firstName": "Ada", "lastName": "Lovelace", "tags": ["math"]}), encoding="utf-8"
    )
    (tmp_path / "newBook.yaml").write_text("title: Notes\npages: 42\n", encoding="utf-8")
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    return tmp_path


class TestFixtureLoader:
    def test_load_json_by_name(self, fixtures_dir: Path) -> None:
        loader = FixtureLoader(fixtures_dir)

        assert loader.load("newUser")["firstName"] == "Ada"

    def test_load_yaml_by_name(self, fixtures_dir: Path) -> None:
        loader = FixtureLoader(fixtures_dir)

        assert loader.load("newBook") == {"title": "Notes", "pages": 42}

    def test_explicit_suffix(self, fixtures_dir: Path) -> None:
        loader = FixtureLoader(fixtures_dir)

        assert loader.load("newBook.yaml")["pages"] == 42

    def test_each_load_is_independent_copy(self, fixtures_dir: Path) -> None:
        loader = FixtureLoader(fixtures_dir)

        first = loader.load("newUser")
        first["tags"].append("poetry")
        first["firstName"] = "Grace"

        second = loader.load("newUser")
        assert second == {"firstName": "Ada", "lastName": "Lovelace", "tags": ["math"]}

    def test_missing_fixture(self, fixtures_dir: Path) -> None:
        loader = FixtureLoader(fixtures_dir)

        with pytest.raises(FixtureLoadError) as exc_info:
            loader.load("ghost")
        assert exc_info.value.error_code.value == "E601"

    def test_invalid_json(self, fixtures_dir: Path) -> None:
        with pytest.raises(FixtureLoadError, match="Invalid JSON"):
            FixtureLoader(fixtures_dir).load("broken")

    def test_names(self, fixtures_dir: Path) -> None:
        assert FixtureLoader(fixtures_dir).names() == ["broken", "newBook", "newUser"]
        assert FixtureLoader(fixtures_dir / "absent").names() == []


class TestInMemoryFixtureLoader:
    def test_copies_on_add_and_load(self) -> None:
        payload = {"firstName": "Ada"}
        loader = InMemoryFixtureLoader()
        loader.add("newUser", payload)
        payload["firstName"] = "Grace"

        loaded = loader.load("newUser")
        loaded["firstName"] = "Hedy"

        assert loader.load("newUser") == {"firstName": "Ada"}

    def test_missing(self) -> None:
        with pytest.raises(FixtureLoadError):
            InMemoryFixtureLoader().load("ghost")
