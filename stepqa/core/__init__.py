"""Core models and shared run state."""

from stepqa.core.aliases import AliasStore
from stepqa.core.context import RunContext
from stepqa.core.environment import MISSING, Environment
from stepqa.core.models import (
    ActionCallable,
    Failure,
    FailFastScope,
    Result,
    RunReport,
    Step,
    StepReport,
    StepState,
    Success,
    SuiteReport,
)
from stepqa.core.refs import AliasRef, Deferred, EnvRef, Lazy, lookup_path, resolve_deferred

__all__ = [
    "MISSING",
    "ActionCallable",
    "AliasRef",
    "AliasStore",
    "Deferred",
    "EnvRef",
    "Environment",
    "FailFastScope",
    "Failure",
    "Lazy",
    "Result",
    "RunContext",
    "RunReport",
    "Step",
    "StepReport",
    "StepState",
    "Success",
    "SuiteReport",
    "lookup_path",
    "resolve_deferred",
]
