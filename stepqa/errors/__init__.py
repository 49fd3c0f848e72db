"""Error hierarchy for stepqa."""

from stepqa.errors.base import (
    AliasError,
    AssertionFailed,
    CommandError,
    ConfigValidationError,
    ErrorCode,
    ErrorContext,
    FixtureLoadError,
    MissingCredentialError,
    MissingEnvironmentValueError,
    NotYetSettledError,
    StepQAError,
    StepValidationError,
    SuiteAbortedError,
    TransportError,
    TransportTimeoutError,
    UnexpectedStatusError,
    UnknownAliasError,
    UnknownCommandError,
)
from stepqa.errors.handlers import classify_error

__all__ = [
    "AliasError",
    "AssertionFailed",
    "CommandError",
    "ConfigValidationError",
    "ErrorCode",
    "ErrorContext",
    "FixtureLoadError",
    "MissingCredentialError",
    "MissingEnvironmentValueError",
    "NotYetSettledError",
    "StepQAError",
    "StepValidationError",
    "SuiteAbortedError",
    "TransportError",
    "TransportTimeoutError",
    "UnexpectedStatusError",
    "UnknownAliasError",
    "UnknownCommandError",
    "classify_error",
]
