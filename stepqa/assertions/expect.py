"""The ``expect`` entry point of the assertion evaluator.

An assertion failing inside a step action raises AssertionFailed. The queue
catches it at the step boundary and records the step as failed; it never
propagates out of the run.

Example:
    >>> def check_created(client, ctx):
    ...     res = ctx.alias("createUser")
    ...     expect(res.status, 201)
    ...     expect_at(res, "body.id", a("number"))
    ...     expect(res.body, includes({"email": "ada@example.com"}))
"""

from __future__ import annotations

from typing import Any

from stepqa.assertions.matchers import Equal, Matcher
from stepqa.core.refs import lookup_path
from stepqa.errors import AssertionFailed


def expect(actual: Any, matcher: Matcher | Any, path: str | None = None, message: str | None = None) -> None:
    """Check ``actual`` against ``matcher``.

    A plain value instead of a matcher means strict equality.

    Raises:
        AssertionFailed: With expected, actual and path of the mismatch.
    """
    if not isinstance(matcher, Matcher):
        matcher = Equal(matcher)

    if matcher.matches(actual):
        return

    diff = matcher.diff_path(actual)
    if path and diff:
        full_path = f"{path}.{diff}"
    else:
        full_path = path or diff

    text = message or matcher.describe_mismatch(actual)
    if path and not message:
        text = f"{path}: {text}"
    raise AssertionFailed(text, expected=matcher.expected, actual=actual, path=full_path)


def expect_at(value: Any, path: str, matcher: Matcher | Any, message: str | None = None) -> None:
    """Check the value found at a dotted path inside ``value``.

    A missing path is an assertion failure, not a lookup error.
    """
    try:
        actual = lookup_path(value, path)
    except KeyError as e:
        raise AssertionFailed(
            message or f"{path}: path not found",
            expected=getattr(matcher, "expected", matcher),
            actual=None,
            path=path,
        ) from e
    expect(actual, matcher, path=path, message=message)


def expect_status(response: Any, expected: int | list[int] | Matcher) -> None:
    """Check a response's status code (one code, a list of codes, or a matcher)."""
    status = getattr(response, "status", None)
    if status is None:
        status = getattr(response, "status_code", None)

    if isinstance(expected, list):
        if status not in expected:
            raise AssertionFailed(
                f"Expected status code in {expected}, got {status}",
                expected=expected,
                actual=status,
                path="status",
            )
        return
    expect(status, expected, path="status")
