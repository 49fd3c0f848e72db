"""stepqa - ordered API test steps with aliases and shared state.

Suites register steps onto a single queue. Steps run strictly one after
another; a step may publish its result under an alias that later steps
resolve, and all suites of a run share one Environment, so a token stored
by ``login`` in one suite authenticates requests in the next.

Example:
    >>> from stepqa import Lazy, Suite, SuiteRunner, expect, deep_equal
    >>>
    >>> users = Suite("users")
    >>>
    >>> @users.before
    ... def authenticate(q):
    ...     q.command("login")
    >>>
    >>> @users.it("creates and fetches a user")
    ... def create_and_fetch(q):
    ...     q.command("request", "POST", "/users/add", fixture="newUser",
    ...               auth=True, alias="createUser", expected_status=201)
    ...     q.command("request", "GET", Lazy(lambda ctx: f"/users/{ctx.alias('createUser', 'body.id')}"),
    ...               auth=True, alias="fetchUser")
    ...
    ...     def check(client, ctx):
    ...         expect(ctx.alias("fetchUser").body, deep_equal(ctx.alias("createUser").body))
    ...
    ...     q.enqueue(check, name="fetched user matches created user")
    >>>
    >>> report = SuiteRunner().run([users])
"""

from stepqa.assertions import (
    AssertionFailed,
    Matcher,
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
)
from stepqa.commands import CommandRegistry, StepHandle, default_registry
from stepqa.config import QAConfig, load_config
from stepqa.core import (
    MISSING,
    AliasRef,
    AliasStore,
    EnvRef,
    Environment,
    FailFastScope,
    Failure,
    Lazy,
    RunContext,
    RunReport,
    Step,
    StepReport,
    StepState,
    Success,
    SuiteReport,
)
from stepqa.errors import (
    MissingCredentialError,
    MissingEnvironmentValueError,
    NotYetSettledError,
    StepQAError,
    TransportError,
    UnexpectedStatusError,
    UnknownAliasError,
)
from stepqa.fixtures import FixtureLoader, InMemoryFixtureLoader
from stepqa.http import AsyncClient, Client, Response
from stepqa.reporters import ConsoleReporter, JSONReporter
from stepqa.runner import Suite, SuiteRunner, TaskQueue, run_suites

__version__ = "0.1.0"

__all__ = [
    "MISSING",
    "AliasRef",
    "AliasStore",
    "AssertionFailed",
    "AsyncClient",
    "Client",
    "CommandRegistry",
    "ConsoleReporter",
    "EnvRef",
    "Environment",
    "FailFastScope",
    "Failure",
    "FixtureLoader",
    "InMemoryFixtureLoader",
    "JSONReporter",
    "Lazy",
    "Matcher",
    "MissingCredentialError",
    "MissingEnvironmentValueError",
    "NotYetSettledError",
    "QAConfig",
    "Response",
    "RunContext",
    "RunReport",
    "Step",
    "StepHandle",
    "StepQAError",
    "StepReport",
    "StepState",
    "Success",
    "Suite",
    "SuiteReport",
    "SuiteRunner",
    "TaskQueue",
    "TransportError",
    "UnexpectedStatusError",
    "UnknownAliasError",
    "a",
    "all_of",
    "an",
    "at_least",
    "at_most",
    "deep_equal",
    "default_registry",
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
    "load_config",
    "matches",
    "not_",
    "one_of",
    "run_suites",
    "satisfies",
    "__version__",
]
