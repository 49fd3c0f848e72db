"""Fixture loading."""

from stepqa.fixtures.loaders import FixtureLoader, InMemoryFixtureLoader

__all__ = ["FixtureLoader", "InMemoryFixtureLoader"]
