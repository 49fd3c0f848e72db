"""Assertion evaluator: ``expect`` plus the matcher library."""

from stepqa.assertions.expect import expect, expect_at, expect_status
from stepqa.assertions.matchers import (
    Matcher,
    a,
    all_of,
    an,
    at_least,
    at_most,
    deep_equal,
    equal,
    greater_than,
    has_all_keys,
    has_keys,
    has_length,
    includes,
    keys_within,
    less_than,
    matches,
    not_,
    one_of,
    satisfies,
    type_name,
)
from stepqa.errors import AssertionFailed

__all__ = [
    "AssertionFailed",
    "Matcher",
    "a",
    "all_of",
    "an",
    "at_least",
    "at_most",
    "deep_equal",
    "equal",
    "expect",
    "expect_at",
    "expect_status",
    "greater_than",
    "has_all_keys",
    "has_keys",
    "has_length",
    "includes",
    "keys_within",
    "less_than",
    "matches",
    "not_",
    "one_of",
    "satisfies",
    "type_name",
]
