"""End-to-end tests: suites run against the fake users API."""

from __future__ import annotations

from typing import Any

import pytest

from stepqa import (
    Lazy,
    Suite,
    SuiteRunner,
    deep_equal,
    expect,
    expect_at,
    has_all_keys,
)
from stepqa.config import QAConfig
from stepqa.core.context import RunContext
from stepqa.core.models import FailFastScope, StepState
from stepqa.fixtures import InMemoryFixtureLoader
from stepqa.http import Client

NEW_USER = {"firstName": "Ada", "lastName": "Lovelace", "age": 36}


def user_url(alias: str) -> Lazy:
    return Lazy(lambda ctx: f"/users/{ctx.alias(alias, 'body.id')}")


@pytest.fixture
def runner(config: QAConfig, api_client: Client) -> SuiteRunner:
    return SuiteRunner(
        config=config,
        client=api_client,
        fixtures=InMemoryFixtureLoader({"newUser": NEW_USER}),
    )


def auth_suite() -> Suite:
    suite = Suite("auth")

    @suite.it("logs in")
    def logs_in(q: Any) -> None:
        q.command("login")

    return suite


def users_suite() -> Suite:
    suite = Suite("users")

    @suite.it("creates and fetches a user")
    def create_and_fetch(q: Any) -> None:
        q.command("request", "POST", "/users/add", fixture="newUser", auth=True,
                  alias="createUser", expected_status=201)
        q.command("request", "GET", user_url("createUser"), alias="fetchUser")

        def compare(client: Any, ctx: RunContext) -> None:
            created = ctx.alias("createUser", "body")
            expect(ctx.alias("fetchUser", "body"), deep_equal(created))
            expect(created, has_all_keys("id", *NEW_USER))

        q.enqueue(compare, name="fetched user equals created user")

    return suite


class TestCrossSuiteState:
    def test_token_from_first_suite_authenticates_second(self, runner: SuiteRunner) -> None:
        report = runner.run([auth_suite(), users_suite()])

        assert report.success, [s.error for s in report.failures]
        assert [s.name for s in report.suites] == ["auth", "users"]
        assert runner.context.env.get("token") == "tok-emilys"
        assert report.get_suite("users").get_step("@fetchUser").response["status"] == 200

    def test_without_login_the_request_fails(self, runner: SuiteRunner) -> None:
        report = runner.run([users_suite()])

        create = report.get_suite("users").get_step("createUser")
        assert create.failed
        assert create.error_kind == "environment"
        assert create.details["key"] == "token"
        assert report.exit_code == 1

    def test_each_run_starts_with_fresh_state(self, runner: SuiteRunner) -> None:
        assert runner.run([auth_suite()]).success

        report = runner.run([users_suite()])

        assert not report.success
        assert runner.context.aliases.names() == []

    def test_step_ids_are_unique_across_suites(self, runner: SuiteRunner) -> None:
        report = runner.run([auth_suite(), users_suite()])

        ids = [s.id for s in report.steps]
        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)


class TestStatusHandling:
    def _lookup_suite(self, **kwargs: Any) -> Suite:
        suite = Suite("lookup")

        @suite.it("looks up a missing user")
        def missing(q: Any) -> None:
            q.command("request", "GET", "/users/abc", alias="missing", **kwargs)

        return suite

    def test_strict_request_fails_on_404(self, runner: SuiteRunner) -> None:
        report = runner.run([self._lookup_suite()])

        step = report.steps[0]
        assert step.error_kind == "status"
        assert step.response["status"] == 404

    def test_lenient_request_exposes_404_body(self, runner: SuiteRunner) -> None:
        suite = self._lookup_suite(fail_on_status_code=False)

        @suite.it("reads the error message")
        def check(q: Any) -> None:
            q.enqueue(
                lambda client, ctx: expect_at(
                    ctx.alias("missing"), "body.message", "User with id 'abc' not found"
                ),
                name="error message",
            )

        report = runner.run([suite])

        assert report.success

    def test_config_wide_lenient_mode(self, config: QAConfig, api_client: Client) -> None:
        config.fail_on_status_code = False
        runner = SuiteRunner(config=config, client=api_client)

        report = runner.run([self._lookup_suite()])

        assert report.success


class TestFailFast:
    def failing_suite(self, name: str = "broken") -> Suite:
        suite = Suite(name)

        @suite.it("fails")
        def fails(q: Any) -> None:
            q.command("request", "GET", "/users/abc")
            q.command("request", "GET", "/users/1", alias="afterFailure")

        @suite.after
        def cleanup(q: Any) -> None:
            q.command("request", "GET", "/users/1", alias="cleanup")

        return suite

    def test_suite_scope_keeps_later_suites(self, config: QAConfig, api_client: Client) -> None:
        runner = SuiteRunner(config=config, client=api_client, fail_fast=True)

        report = runner.run([self.failing_suite(), auth_suite()])

        broken = report.get_suite("broken")
        assert broken.aborted
        assert broken.get_step("afterFailure").state == StepState.SKIPPED
        assert broken.get_step("cleanup").success
        assert report.get_suite("auth").success

    def test_run_scope_skips_later_suites(self, config: QAConfig, api_client: Client) -> None:
        runner = SuiteRunner(
            config=config, client=api_client, fail_fast=True, fail_fast_scope=FailFastScope.RUN
        )

        report = runner.run([self.failing_suite(), auth_suite()])

        auth = report.get_suite("auth")
        assert auth.aborted
        assert [s.state for s in auth.steps] == [StepState.SKIPPED]
        assert report.fail_fast_scope == FailFastScope.RUN
        assert report.skipped_steps == 2

    def test_without_fail_fast_everything_runs(self, runner: SuiteRunner) -> None:
        report = runner.run([self.failing_suite()])

        suite = report.get_suite("broken")
        assert not suite.aborted
        assert suite.get_step("afterFailure").success
        assert report.failed_steps == 1


class TestSuite:
    def test_hooks_wrap_tests(self, runner: SuiteRunner) -> None:
        order: list[str] = []
        suite = Suite("ordered")

        def mark(label: str):
            def action(client: Any, ctx: RunContext) -> None:
                order.append(label)

            action.__name__ = label
            return action

        @suite.after
        def teardown(q: Any) -> None:
            q.enqueue(mark("after"))

        @suite.it("first")
        def first(q: Any) -> None:
            q.enqueue(mark("test-1"))

        @suite.before
        def setup(q: Any) -> None:
            q.enqueue(mark("before"))

        @suite.it("second")
        def second(q: Any) -> None:
            q.enqueue(mark("test-2"))

        report = runner.run([suite])

        assert order == ["before", "test-1", "test-2", "after"]
        grouped = report.suites[0].tests()
        assert list(grouped) == ["before hook", "first", "second", "after hook"]

    def test_duplicate_test_name_rejected(self) -> None:
        suite = Suite("dupes")
        suite.add_test("same", lambda q: None)

        with pytest.raises(ValueError):
            suite.add_test("same", lambda q: None)

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError):
            Suite("  ")
