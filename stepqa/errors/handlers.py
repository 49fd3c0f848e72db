"""Converting exceptions raised inside steps into recorded failures."""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass, field
from typing import Any

from stepqa.errors.base import ErrorCode, ErrorContext, StepQAError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErrorInfo:
    """Classification of an exception caught at a step boundary."""

    kind: str
    code: str
    message: str
    error_type: str
    details: dict[str, Any] = field(default_factory=dict)


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    return repr(value)


def classify_error(error: BaseException) -> ErrorInfo:
    """Map any exception to a failure kind and error code.

    stepqa errors carry their own kind. A bare ``assert`` inside an action
    raises the builtin AssertionError and is reported as an assertion
    failure too. Anything else is an unexpected error (E999).
    """
    if isinstance(error, StepQAError):
        details: dict[str, Any] = dict(error.context.extra)
        for attr in ("expected", "actual", "path", "alias", "key"):
            if hasattr(error, attr):
                details[attr] = getattr(error, attr)
        if error.context.response:
            details["response"] = error.context.response
        return ErrorInfo(
            kind=error.kind,
            code=error.error_code.value,
            message=error.message,
            error_type=error.__class__.__name__,
            details={k: _jsonable(v) for k, v in details.items()},
        )

    if isinstance(error, AssertionError):
        return ErrorInfo(
            kind="assertion",
            code=ErrorCode.ASSERTION_FAILED.value,
            message=str(error) or "assert statement failed",
            error_type=error.__class__.__name__,
        )

    return ErrorInfo(
        kind="error",
        code=ErrorCode.UNKNOWN.value,
        message=f"{error.__class__.__name__}: {error}",
        error_type=error.__class__.__name__,
    )


class ErrorLogger:
    """Structured error logging with context."""

    def __init__(self, name: str = "stepqa", include_traceback: bool = False) -> None:
        self.logger = logging.getLogger(name)
        self.include_traceback = include_traceback

    def log_error(
        self,
        error: BaseException,
        context: ErrorContext | None = None,
        level: int = logging.ERROR,
    ) -> None:
        info = classify_error(error)
        location = context.format_location() if context else ""
        message = f"[{info.code}] {info.message}"
        if location and location != "unknown location":
            message = f"{message} ({location})"

        extra: dict[str, Any] = {"error_kind": info.kind}
        if self.include_traceback:
            extra["traceback"] = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )
        self.logger.log(level, message, extra=extra)

    def log_warning(self, error: BaseException, context: ErrorContext | None = None) -> None:
        self.log_error(error, context, level=logging.WARNING)
