"""Suite runner - executes suites one after another against one run context."""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from stepqa.commands import CommandRegistry, default_registry
from stepqa.config import QAConfig
from stepqa.core.aliases import AliasStore
from stepqa.core.context import RunContext
from stepqa.core.environment import Environment
from stepqa.core.models import FailFastScope, RunReport, SuiteReport
from stepqa.fixtures import FixtureLoader
from stepqa.http import Client
from stepqa.runner.queue import TaskQueue
from stepqa.runner.suite import Suite, SuiteBody

logger = logging.getLogger(__name__)


class SuiteRunner:
    """Runs suites sequentially and builds the run report.

    Each run gets a fresh RunContext: a new Environment seeded from the
    configuration and an empty alias store. That context is shared by all
    suites of the run, so a token stored by ``login`` in the first suite is
    visible in every later one. Each suite drains its own queue completely
    (or up to a fail-fast abort) before the next suite starts.

    With ``fail_fast`` on, ``fail_fast_scope`` decides how far an abort
    reaches: ``suite`` skips the rest of the failing suite only, ``run``
    also skips every later suite.

    Dependencies can be injected for testability.
    """

    def __init__(
        self,
        config: QAConfig | None = None,
        client: Any = None,
        commands: CommandRegistry | None = None,
        fixtures: Any = None,
        fail_fast: bool | None = None,
        fail_fast_scope: FailFastScope | str | None = None,
    ) -> None:
        self.config = config or QAConfig()
        self.client = client
        self.commands = commands or default_registry()
        self.fixtures = fixtures
        self.fail_fast = self.config.fail_fast if fail_fast is None else fail_fast
        scope = fail_fast_scope or self.config.fail_fast_scope
        self.fail_fast_scope = FailFastScope(scope)
        self.context: RunContext | None = None

    def build_context(self) -> RunContext:
        """Create the run-scoped context for a fresh run."""
        return RunContext(
            env=Environment.from_config(self.config),
            aliases=AliasStore(),
            client=self.client,
            fixtures=self.fixtures or FixtureLoader(self.config.fixtures_dir),
            commands=self.commands,
            fail_on_status_code=self.config.fail_on_status_code,
        )

    def run(self, suites: Iterable[Suite]) -> RunReport:
        """Execute suites in order and return the run report.

        Must not be called from inside a running event loop; use ``arun``
        there.
        """
        return asyncio.run(self.arun(suites))

    async def arun(self, suites: Iterable[Suite]) -> RunReport:
        suites = list(suites)
        logger.info(f"Starting run: {len(suites)} suite(s)")
        started_at = datetime.now()

        owns_client = self.client is None
        if owns_client:
            self.client = Client(
                self.config.base_url,
                timeout=self.config.timeout,
                fail_on_status_code=self.config.fail_on_status_code,
            )

        context = self.build_context()
        self.context = context
        ids = itertools.count(1)
        reports: list[SuiteReport] = []
        run_aborted = False

        try:
            for suite in suites:
                queue = TaskQueue(context, name=suite.name, fail_fast=self.fail_fast, ids=ids)
                suite.register(queue)

                if run_aborted:
                    logger.info(f"Skipping suite {suite.name}: run aborted")
                    reports.append(queue.cancel())
                    continue

                logger.info(f"Running suite: {suite.name}")
                report = await queue.arun()
                reports.append(report)
                logger.info(
                    f"Suite {suite.name}: {report.passed_steps} passed, "
                    f"{report.failed_steps} failed, {report.skipped_steps} skipped"
                )

                if report.aborted and self.fail_fast_scope == FailFastScope.RUN:
                    logger.error(f"Fail fast (run scope) triggered in suite: {suite.name}")
                    run_aborted = True
        finally:
            if owns_client:
                await self._close_client()

        finished_at = datetime.now()
        return RunReport(
            suites=reports,
            started_at=started_at,
            finished_at=finished_at,
            duration_ms=(finished_at - started_at).total_seconds() * 1000,
            fail_fast=self.fail_fast,
            fail_fast_scope=self.fail_fast_scope,
        )

    async def _close_client(self) -> None:
        closed = self.client.disconnect()
        if inspect.isawaitable(closed):
            await closed
        self.client = None


def run_suites(suites: Iterable[Suite], config: QAConfig | None = None, **kwargs: Any) -> RunReport:
    """Convenience wrapper: build a SuiteRunner and run ``suites``."""
    return SuiteRunner(config=config, **kwargs).run(suites)


__all__ = ["Suite", "SuiteBody", "SuiteRunner", "TaskQueue", "run_suites"]
