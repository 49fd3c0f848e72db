"""Exception hierarchy for stepqa.

Every error raised inside a step action is caught at the step boundary and
recorded as that step's failure. The classes below give each failure a kind
and a stable error code, so reports can tell "the API could not be reached"
apart from "the API answered, but wrongly".

All stepqa errors inherit from StepQAError and include:
- error_code: an ErrorCode enum member for categorization
- context: ErrorContext with suite/test/step details
- suggestions: actionable steps to resolve the issue

Example:
    try:
        ctx.env.require_credential("token")
    except MissingCredentialError as e:
        print(f"[{e.error_code.value}] {e.message}")
        print(e.key)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes.

    - E0xx: Transport errors
    - E1xx: Response errors
    - E2xx: Validation and assertion errors
    - E3xx: Shared state errors (aliases, environment)
    - E4xx: Command and run errors
    - E6xx: Fixture errors
    - E9xx: Unknown errors
    """

    TRANSPORT_FAILED = "E001"
    TRANSPORT_TIMEOUT = "E002"

    UNEXPECTED_STATUS = "E102"

    ASSERTION_FAILED = "E201"
    INVALID_CONFIG = "E202"
    INVALID_STEP = "E204"

    UNKNOWN_ALIAS = "E301"
    ALIAS_NOT_SETTLED = "E302"
    MISSING_ENV_VALUE = "E303"
    MISSING_CREDENTIAL = "E304"

    COMMAND_FAILED = "E401"
    UNKNOWN_COMMAND = "E402"
    SUITE_ABORTED = "E403"

    FIXTURE_ERROR = "E601"

    UNKNOWN = "E999"

    @property
    def category(self) -> str:
        """Get the error category name."""
        code_num = int(self.value[1:])
        if code_num < 100:
            return "transport"
        elif code_num < 200:
            return "response"
        elif code_num < 300:
            return "validation"
        elif code_num < 400:
            return "state"
        elif code_num < 500:
            return "command"
        elif code_num < 700:
            return "fixture"
        else:
            return "unknown"


@dataclass
class ErrorContext:
    """Where an error happened and what was on the wire at the time."""

    suite_name: str | None = None
    test_name: str | None = None
    step_name: str | None = None
    request: dict[str, Any] | None = None
    response: dict[str, Any] | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        result = {
            "suite_name": self.suite_name,
            "test_name": self.test_name,
            "step_name": self.step_name,
            "request": self.request,
            "response": self.response,
            "extra": self.extra,
            "timestamp": self.timestamp.isoformat(),
        }
        return {k: v for k, v in result.items() if v is not None}

    def format_location(self) -> str:
        """Format the error location as a readable string."""
        parts = []
        if self.suite_name:
            parts.append(f"suite={self.suite_name}")
        if self.test_name:
            parts.append(f"test={self.test_name}")
        if self.step_name:
            parts.append(f"step={self.step_name}")
        return " > ".join(parts) if parts else "unknown location"


class StepQAError(Exception):
    """Base exception for all stepqa errors.

    Attributes:
        error_code: Unique ErrorCode for this error type.
        kind: Short failure kind used in reports ("assertion", "transport", ...).
        message: Human-readable error description.
        context: ErrorContext with execution details.
        cause: The underlying exception, if any.
    """

    error_code: ErrorCode = ErrorCode.UNKNOWN
    kind: str = "error"
    default_message: str = "An unexpected error occurred"
    default_suggestions: list[str] = []

    def __init__(
        self,
        message: str | None = None,
        error_code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
        suggestions: list[str] | None = None,
        **extra_context: Any,
    ) -> None:
        self.message = message or self.default_message
        self.error_code = error_code or self.error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self._suggestions = suggestions

        if extra_context:
            self.context.extra.update(extra_context)

        super().__init__(self.message)

    @property
    def suggestions(self) -> list[str]:
        if self._suggestions is not None:
            return self._suggestions
        return self.default_suggestions.copy()

    def __str__(self) -> str:
        parts = [f"[{self.error_code.value}] {self.message}"]
        location = self.context.format_location()
        if location != "unknown location":
            parts.append(f"at {location}")
        return " | ".join(parts)

    def format_verbose(self) -> str:
        """Format error with full details including suggestions."""
        lines = [f"Error [{self.error_code.value}]: {self.message}", ""]

        location = self.context.format_location()
        if location != "unknown location":
            lines.append(f"Location: {location}")

        if self.context.request:
            method = self.context.request.get("method", "?")
            url = self.context.request.get("url", "?")
            lines.append(f"Request: {method} {url}")

        if self.context.response:
            status = self.context.response.get("status", "?")
            lines.append(f"Response: HTTP {status}")

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  - {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.error_code.value,
            "error_type": self.__class__.__name__,
            "kind": self.kind,
            "message": self.message,
            "suggestions": self.suggestions,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


class TransportError(StepQAError):
    """The HTTP client could not obtain any response.

    Raised for network-level failures: refused connections, DNS errors,
    timeouts. The system under test was never reached.
    """

    error_code = ErrorCode.TRANSPORT_FAILED
    kind = "transport"
    default_message = "Failed to reach the system under test"
    default_suggestions = [
        "Verify the service is running and base_url is correct",
        "Check network connectivity and proxy settings",
    ]

    def __init__(
        self,
        message: str | None = None,
        method: str | None = None,
        url: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.method = method
        self.url = url
        context = kwargs.pop("context", None) or ErrorContext(
            request={"method": method, "url": url} if method or url else None
        )
        super().__init__(message, context=context, **kwargs)


class TransportTimeoutError(TransportError):
    """The request timed out before any response arrived."""

    error_code = ErrorCode.TRANSPORT_TIMEOUT
    default_message = "Request timed out"
    default_suggestions = [
        "Increase timeout in stepqa.yaml",
        "Check if the service is overloaded or slow to respond",
    ]


class UnexpectedStatusError(StepQAError):
    """The server answered with a non-success status code.

    Only raised when status checking is on (``fail_on_status_code``); the
    response is kept on the error so assertions and reports can inspect it.
    """

    error_code = ErrorCode.UNEXPECTED_STATUS
    kind = "status"
    default_message = "Unexpected HTTP status"
    default_suggestions = [
        "Pass fail_on_status_code=False if a non-2xx answer is expected",
    ]

    def __init__(self, response: Any, message: str | None = None, **kwargs: Any) -> None:
        self.response = response
        status = getattr(response, "status", None)
        method = getattr(response, "method", "?")
        url = getattr(response, "url", "?")
        context = kwargs.pop("context", None) or ErrorContext(
            request={"method": method, "url": url},
            response={"status": status, "body": getattr(response, "body", None)},
        )
        super().__init__(
            message or f"{method} {url} returned HTTP {status}",
            context=context,
            **kwargs,
        )


class AssertionFailed(StepQAError):
    """An expectation about a result did not hold."""

    error_code = ErrorCode.ASSERTION_FAILED
    kind = "assertion"
    default_message = "Assertion failed"

    def __init__(
        self,
        message: str | None = None,
        expected: Any = None,
        actual: Any = None,
        path: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.expected = expected
        self.actual = actual
        self.path = path
        super().__init__(message, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({"expected": repr(self.expected), "actual": repr(self.actual), "path": self.path})
        return data


class ConfigValidationError(StepQAError):
    """Configuration could not be loaded or is invalid."""

    error_code = ErrorCode.INVALID_CONFIG
    kind = "config"
    default_message = "Invalid configuration"
    default_suggestions = ["Check stepqa.yaml and STEPQA_* environment variables"]


class StepValidationError(StepQAError):
    """A step definition is malformed."""

    error_code = ErrorCode.INVALID_STEP
    kind = "config"


class AliasError(StepQAError):
    """Base class for alias lookups that went wrong.

    These indicate a composition bug in the suite: reading an alias that is
    never published, or reading it before its step settled.
    """

    kind = "alias"

    def __init__(self, alias: str, message: str | None = None, **kwargs: Any) -> None:
        self.alias = alias
        super().__init__(message, **kwargs)


class UnknownAliasError(AliasError):
    """The alias was never published."""

    error_code = ErrorCode.UNKNOWN_ALIAS
    default_suggestions = [
        "Check the alias name matches the one given to the publishing step",
        "Make sure the publishing step succeeded",
    ]

    def __init__(self, alias: str, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(alias, message or f"Alias '@{alias}' was never published", **kwargs)


class NotYetSettledError(AliasError):
    """The step publishing the alias has not settled yet."""

    error_code = ErrorCode.ALIAS_NOT_SETTLED
    default_suggestions = ["Read the alias from a step enqueued after the publishing step"]

    def __init__(self, alias: str, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(
            alias, message or f"Alias '@{alias}' is read before its step settled", **kwargs
        )


class MissingEnvironmentValueError(StepQAError):
    """A step required an environment key that is not set."""

    error_code = ErrorCode.MISSING_ENV_VALUE
    kind = "environment"
    default_suggestions = [
        "Add the key to the 'env' section of stepqa.yaml",
        "Run the command that sets it (e.g. login) before this step",
    ]

    def __init__(self, key: str, message: str | None = None, **kwargs: Any) -> None:
        self.key = key
        super().__init__(message or f"Environment value '{key}' is not set", key=key, **kwargs)


class MissingCredentialError(MissingEnvironmentValueError):
    """A step needed a credential (token, username, password) that is not set."""

    error_code = ErrorCode.MISSING_CREDENTIAL
    default_suggestions = [
        "Invoke the login command before steps that need a token",
        "Set the credential in the environment or stepqa.yaml",
    ]

    def __init__(self, key: str, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(key, message or f"Credential '{key}' is not set", **kwargs)


class CommandError(StepQAError):
    """A command could not be registered or built."""

    error_code = ErrorCode.COMMAND_FAILED
    kind = "command"


class UnknownCommandError(CommandError):
    """No command is registered under the requested name."""

    error_code = ErrorCode.UNKNOWN_COMMAND

    def __init__(self, name: str, available: list[str] | None = None, **kwargs: Any) -> None:
        self.name = name
        message = f"Command '{name}' is not registered"
        if available:
            message += f" (available: {', '.join(sorted(available))})"
        super().__init__(message, **kwargs)


class SuiteAbortedError(StepQAError):
    """A fail-fast abort cancelled this step before it started."""

    error_code = ErrorCode.SUITE_ABORTED
    kind = "skipped"
    default_message = "Not run: an earlier step failed with fail-fast enabled"


class FixtureLoadError(StepQAError):
    """A fixture file is missing or cannot be parsed."""

    error_code = ErrorCode.FIXTURE_ERROR
    kind = "fixture"
