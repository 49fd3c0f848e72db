"""Tests for expect and the matcher library."""

from __future__ import annotations

import pytest

from stepqa.assertions import (
    AssertionFailed,
    a,
    all_of,
    an,
    at_least,
    at_most,
    deep_equal,
    equal,
    expect,
    expect_at,
    expect_status,
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
from stepqa.http import Response

AUTHOR = {"id": 1, "idBook": 1, "firstName": "First Name 1", "lastName": "Last Name 1"}


class TestExpect:
    def test_plain_value_means_equality(self) -> None:
        expect(201, 201)

        with pytest.raises(AssertionFailed) as exc_info:
            expect(200, 201)

        error = exc_info.value
        assert error.expected == 201
        assert error.actual == 200
        assert error.error_code.value == "E201"

    def test_bool_is_not_a_number(self) -> None:
        with pytest.raises(AssertionFailed):
            expect(True, 1)

    def test_custom_message(self) -> None:
        with pytest.raises(AssertionFailed, match="token should be set"):
            expect(None, a("string"), message="token should be set")

    def test_path_is_prefixed(self) -> None:
        with pytest.raises(AssertionFailed) as exc_info:
            expect({"id": 1}, deep_equal({"id": 2}), path="body")

        assert exc_info.value.path == "body.id"
        assert str(exc_info.value).startswith("body:")


class TestExpectAt:
    def test_nested_path(self) -> None:
        expect_at({"body": {"users": [{"age": 28}]}}, "body.users.0.age", greater_than(18))

    def test_missing_path_is_assertion_failure(self) -> None:
        with pytest.raises(AssertionFailed) as exc_info:
            expect_at({"body": {}}, "body.id", a("number"))

        assert exc_info.value.path == "body.id"
        assert exc_info.value.actual is None

    def test_response_attribute_path(self) -> None:
        response = Response(status=200, body={"id": 7})

        expect_at(response, "body.id", 7)


class TestExpectStatus:
    def test_single_code(self) -> None:
        expect_status(Response(status=201), 201)

    def test_list_of_codes(self) -> None:
        expect_status(Response(status=204), [200, 204])

        with pytest.raises(AssertionFailed) as exc_info:
            expect_status(Response(status=500), [200, 204])
        assert exc_info.value.path == "status"

    def test_matcher(self) -> None:
        expect_status(Response(status=404), at_least(400))

    def test_object_with_status_code(self) -> None:
        class Legacy:
            status_code = 200

        expect_status(Legacy(), 200)


class TestMatchers:
    def test_deep_equal_reports_first_difference(self) -> None:
        expected = {"user": {"name": "Ada", "tags": ["a", "b"]}}
        actual = {"user": {"name": "Ada", "tags": ["a", "c"]}}

        with pytest.raises(AssertionFailed) as exc_info:
            expect(actual, deep_equal(expected))

        assert exc_info.value.path == "user.tags.1"
        assert "user.tags.1" in exc_info.value.message

    def test_deep_equal_detects_extra_keys(self) -> None:
        assert not deep_equal({"a": 1}).matches({"a": 1, "b": 2})
        assert deep_equal([1, {"a": None}]).matches([1, {"a": None}])

    def test_equal_keeps_booleans_apart_from_numbers_when_nested(self) -> None:
        assert not equal(True).matches(1)
        assert not equal({"a": True}).matches({"a": 1})
        assert not equal([0, {"flag": False}]).matches([0, {"flag": 0}])
        assert equal({"a": True, "b": [1, 2]}).matches({"a": True, "b": [1, 2]})

    def test_type_names(self) -> None:
        assert a("number").matches(1.5)
        assert a("integer").matches(3)
        assert not a("integer").matches(True)
        assert an("object").matches({})
        assert an("array").matches([])
        assert a("null").matches(None)
        assert type_name(False) == "boolean"

    def test_unknown_type_name(self) -> None:
        with pytest.raises(ValueError):
            a("float")

    def test_includes(self) -> None:
        assert includes({"firstName": "Ada"}).matches({"firstName": "Ada", "age": 36})
        assert not includes({"firstName": "Ada"}).matches({"firstName": "Grace"})
        assert includes(2).matches([1, 2, 3])
        assert includes("Name").matches("First Name 1")

    def test_key_matchers(self) -> None:
        expect(AUTHOR, has_all_keys("id", "idBook", "firstName", "lastName"))
        expect(AUTHOR, has_keys("id", "idBook"))
        expect(AUTHOR, keys_within("id", "idBook", "firstName", "lastName", "bio"))

        with pytest.raises(AssertionFailed, match="missing \\['id'\\]"):
            expect({"idBook": 1}, has_all_keys("id", "idBook"))

    def test_comparisons(self) -> None:
        assert greater_than(1).matches(2)
        assert less_than(1).matches(0)
        assert at_least(1).matches(1)
        assert at_most(1).matches(1)
        assert not greater_than(1).matches("x")

    def test_one_of_and_length(self) -> None:
        assert one_of(200, 201).matches(201)
        assert has_length(2).matches([1, 2])
        assert has_length(greater_than(0)).matches("abc")
        assert not has_length(1).matches(5)

    def test_regex_and_combinators(self) -> None:
        assert matches(r"^\S+@\S+$").matches("ada@example.com")
        assert not_(equal(1)).matches(2)
        assert all_of(a("number"), greater_than(0)).matches(5)
        assert satisfies(lambda v: v % 2 == 0, "be even").matches(4)

    def test_all_of_reports_failing_part(self) -> None:
        with pytest.raises(AssertionFailed, match="greater than 10"):
            expect(5, all_of(a("number"), greater_than(10)))
