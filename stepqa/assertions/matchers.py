"""Matchers used by ``expect``.

Each matcher answers one question about an actual value and knows how to
describe a mismatch. Factory functions (``equal``, ``a``, ``includes`` ...)
are the public way to build them.

Example:
    >>> expect(response.status, equal(201))
    >>> expect(response.body, includes({"firstName": "Ada"}))
    >>> expect(author, has_all_keys("id", "idBook", "firstName", "lastName"))
    >>> expect(author["id"], a("number"))
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

TYPE_NAMES = ("number", "integer", "string", "array", "object", "boolean", "null")


def type_name(value: Any) -> str:
    """Name the JSON type of a value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _strict_equal(a: Any, b: Any) -> bool:
    # True == 1 in Python but not in JSON
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def first_difference(expected: Any, actual: Any, path: str = "") -> str | None:
    """Return the dotted path of the first difference, or None if equal."""
    if isinstance(expected, Mapping) and isinstance(actual, Mapping):
        for key in expected:
            sub = f"{path}.{key}" if path else str(key)
            if key not in actual:
                return sub
            diff = first_difference(expected[key], actual[key], sub)
            if diff is not None:
                return diff
        for key in actual:
            if key not in expected:
                return f"{path}.{key}" if path else str(key)
        return None
    if (
        isinstance(expected, Sequence)
        and isinstance(actual, Sequence)
        and not isinstance(expected, (str, bytes))
        and not isinstance(actual, (str, bytes))
    ):
        for i, (e, a) in enumerate(zip(expected, actual)):
            diff = first_difference(e, a, f"{path}.{i}" if path else str(i))
            if diff is not None:
                return diff
        if len(expected) != len(actual):
            return f"{path}.length" if path else "length"
        return None
    return None if _strict_equal(expected, actual) else (path or "")


class Matcher(ABC):
    """Base class for all matchers."""

    description: str = "match"

    @property
    def expected(self) -> Any:
        return self.description

    @abstractmethod
    def matches(self, actual: Any) -> bool: ...

    def describe_mismatch(self, actual: Any) -> str:
        return f"expected {actual!r} to {self.description}"

    def diff_path(self, actual: Any) -> str | None:
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.description}>"


class Equal(Matcher):
    def __init__(self, value: Any) -> None:
        self.value = value
        self.description = f"equal {value!r}"

    @property
    def expected(self) -> Any:
        return self.value

    def matches(self, actual: Any) -> bool:
        # structures compare element-wise so True never equals 1 at any depth
        if isinstance(self.value, (Mapping, list, tuple)):
            return first_difference(self.value, actual) is None
        return _strict_equal(actual, self.value)


class DeepEqual(Equal):
    def __init__(self, value: Any) -> None:
        super().__init__(value)
        self.description = f"deep equal {value!r}"

    def matches(self, actual: Any) -> bool:
        return first_difference(self.value, actual) is None

    def diff_path(self, actual: Any) -> str | None:
        return first_difference(self.value, actual) or None

    def describe_mismatch(self, actual: Any) -> str:
        where = self.diff_path(actual)
        suffix = f" (first difference at '{where}')" if where else ""
        return f"expected {actual!r} to {self.description}{suffix}"


class TypeOf(Matcher):
    def __init__(self, name: str) -> None:
        if name not in TYPE_NAMES:
            raise ValueError(f"Unknown type name '{name}'. Valid: {', '.join(TYPE_NAMES)}")
        self.name = name
        article = "an" if name[0] in "aeiou" else "a"
        self.description = f"be {article} {name}"

    @property
    def expected(self) -> Any:
        return self.name

    def matches(self, actual: Any) -> bool:
        if self.name == "integer":
            return isinstance(actual, int) and not isinstance(actual, bool)
        return type_name(actual) == self.name

    def describe_mismatch(self, actual: Any) -> str:
        return f"expected {actual!r} to {self.description}, got {type_name(actual)}"


class Includes(Matcher):
    """Partial match for mappings, membership for sequences and strings."""

    def __init__(self, subset: Any) -> None:
        self.subset = subset
        self.description = f"include {subset!r}"

    @property
    def expected(self) -> Any:
        return self.subset

    def matches(self, actual: Any) -> bool:
        if isinstance(self.subset, Mapping):
            if not isinstance(actual, Mapping):
                return False
            return all(
                k in actual and first_difference(v, actual[k]) is None
                for k, v in self.subset.items()
            )
        if isinstance(actual, str):
            return isinstance(self.subset, str) and self.subset in actual
        if isinstance(actual, Iterable):
            return any(first_difference(self.subset, item) is None for item in actual)
        return False

    def diff_path(self, actual: Any) -> str | None:
        if isinstance(self.subset, Mapping) and isinstance(actual, Mapping):
            for k, v in self.subset.items():
                if k not in actual:
                    return str(k)
                diff = first_difference(v, actual[k], str(k))
                if diff is not None:
                    return diff
        return None


class HasAllKeys(Matcher):
    """The mapping has exactly these keys."""

    def __init__(self, keys: Iterable[str]) -> None:
        self.keys = sorted(keys)
        self.description = f"have all keys {self.keys!r}"

    @property
    def expected(self) -> Any:
        return self.keys

    def matches(self, actual: Any) -> bool:
        return isinstance(actual, Mapping) and sorted(actual) == self.keys

    def describe_mismatch(self, actual: Any) -> str:
        if not isinstance(actual, Mapping):
            return f"expected {type_name(actual)} to be an object with keys {self.keys!r}"
        missing = sorted(set(self.keys) - set(actual))
        extra = sorted(set(actual) - set(self.keys))
        return f"expected keys {self.keys!r}, missing {missing!r}, unexpected {extra!r}"


class HasKeys(HasAllKeys):
    """The mapping has at least these keys."""

    def __init__(self, keys: Iterable[str]) -> None:
        super().__init__(keys)
        self.description = f"have keys {self.keys!r}"

    def matches(self, actual: Any) -> bool:
        return isinstance(actual, Mapping) and set(self.keys) <= set(actual)


class KeysWithin(Matcher):
    """Every key of the mapping belongs to an allowed set."""

    def __init__(self, allowed: Iterable[str]) -> None:
        self.allowed = sorted(allowed)
        self.description = f"only have keys within {self.allowed!r}"

    @property
    def expected(self) -> Any:
        return self.allowed

    def matches(self, actual: Any) -> bool:
        return isinstance(actual, Mapping) and set(actual) <= set(self.allowed)

    def describe_mismatch(self, actual: Any) -> str:
        if not isinstance(actual, Mapping):
            return f"expected {type_name(actual)} to be an object"
        extra = sorted(set(actual) - set(self.allowed))
        return f"unexpected keys {extra!r}, allowed {self.allowed!r}"


class OneOf(Matcher):
    def __init__(self, values: Iterable[Any]) -> None:
        self.values = list(values)
        self.description = f"be one of {self.values!r}"

    @property
    def expected(self) -> Any:
        return self.values

    def matches(self, actual: Any) -> bool:
        return any(_strict_equal(actual, v) for v in self.values)


class Compare(Matcher):
    def __init__(self, bound: Any, op: str) -> None:
        self.bound = bound
        self.op = op
        words = {">": "be greater than", "<": "be less than", ">=": "be at least", "<=": "be at most"}
        self.description = f"{words[op]} {bound!r}"

    @property
    def expected(self) -> Any:
        return f"{self.op} {self.bound!r}"

    def matches(self, actual: Any) -> bool:
        try:
            if self.op == ">":
                return actual > self.bound
            if self.op == "<":
                return actual < self.bound
            if self.op == ">=":
                return actual >= self.bound
            return actual <= self.bound
        except TypeError:
            return False


class HasLength(Matcher):
    def __init__(self, length: int | Matcher) -> None:
        self.length = length
        inner = length.description if isinstance(length, Matcher) else f"be {length}"
        self.description = f"have length that should {inner}"

    @property
    def expected(self) -> Any:
        return self.length.expected if isinstance(self.length, Matcher) else self.length

    def matches(self, actual: Any) -> bool:
        try:
            size = len(actual)
        except TypeError:
            return False
        if isinstance(self.length, Matcher):
            return self.length.matches(size)
        return size == self.length


class Matches(Matcher):
    def __init__(self, pattern: str | re.Pattern[str]) -> None:
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        self.description = f"match /{self.pattern.pattern}/"

    @property
    def expected(self) -> Any:
        return self.pattern.pattern

    def matches(self, actual: Any) -> bool:
        return isinstance(actual, str) and self.pattern.search(actual) is not None


class Not(Matcher):
    def __init__(self, inner: Matcher) -> None:
        self.inner = inner
        self.description = f"not {inner.description}"

    @property
    def expected(self) -> Any:
        return f"not {self.inner.expected!r}"

    def matches(self, actual: Any) -> bool:
        return not self.inner.matches(actual)


class AllOf(Matcher):
    def __init__(self, matchers: Sequence[Matcher]) -> None:
        self.matchers = list(matchers)
        self.description = " and ".join(m.description for m in self.matchers)

    def matches(self, actual: Any) -> bool:
        return all(m.matches(actual) for m in self.matchers)

    def describe_mismatch(self, actual: Any) -> str:
        for m in self.matchers:
            if not m.matches(actual):
                return m.describe_mismatch(actual)
        return super().describe_mismatch(actual)


class Satisfies(Matcher):
    def __init__(self, predicate: Callable[[Any], bool], description: str | None = None) -> None:
        self.predicate = predicate
        self.description = description or f"satisfy {getattr(predicate, '__name__', 'predicate')}"

    def matches(self, actual: Any) -> bool:
        return bool(self.predicate(actual))


def equal(value: Any) -> Matcher:
    return Equal(value)


def deep_equal(value: Any) -> Matcher:
    return DeepEqual(value)


def a(name: str) -> Matcher:
    return TypeOf(name)


an = a


def includes(subset: Any) -> Matcher:
    return Includes(subset)


def has_all_keys(*keys: str) -> Matcher:
    return HasAllKeys(keys)


def has_keys(*keys: str) -> Matcher:
    return HasKeys(keys)


def keys_within(*allowed: str) -> Matcher:
    return KeysWithin(allowed)


def one_of(*values: Any) -> Matcher:
    return OneOf(values)


def greater_than(bound: Any) -> Matcher:
    return Compare(bound, ">")


def less_than(bound: Any) -> Matcher:
    return Compare(bound, "<")


def at_least(bound: Any) -> Matcher:
    return Compare(bound, ">=")


def at_most(bound: Any) -> Matcher:
    return Compare(bound, "<=")


def has_length(length: int | Matcher) -> Matcher:
    return HasLength(length)


def matches(pattern: str | re.Pattern[str]) -> Matcher:
    return Matches(pattern)


def not_(inner: Matcher) -> Matcher:
    return Not(inner)


def all_of(*matchers: Matcher) -> Matcher:
    return AllOf(matchers)


def satisfies(predicate: Callable[[Any], bool], description: str | None = None) -> Matcher:
    return Satisfies(predicate, description)
