"""Rich console output of a run report."""

from __future__ import annotations

from io import StringIO
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

from stepqa.core.models import RunReport, StepReport, StepState, SuiteReport
from stepqa.reporters.base import BaseReporter

STATE_STYLES = {
    StepState.SUCCESS: ("✓", "green"),
    StepState.FAILURE: ("✗", "red"),
    StepState.SKIPPED: ("-", "yellow"),
    StepState.PENDING: ("·", "dim"),
    StepState.RUNNING: ("…", "cyan"),
}


class ConsoleReporter(BaseReporter):
    """Print a table per suite and a summary line."""

    def __init__(
        self,
        output_path: str | Path | None = None,
        console: Console | None = None,
        show_passed: bool = True,
    ) -> None:
        super().__init__(output_path)
        self.console = console or Console()
        self.show_passed = show_passed

    @property
    def file_extension(self) -> str:
        return ".txt"

    def render(self, report: RunReport) -> None:
        """Print the report to the console."""
        self._print(self.console, report)

    def generate(self, report: RunReport) -> str:
        buffer = StringIO()
        console = Console(file=buffer, force_terminal=False, width=120, color_system=None)
        self._print(console, report)
        return buffer.getvalue()

    def _print(self, console: Console, report: RunReport) -> None:
        for suite in report.suites:
            console.print(self._suite_table(suite))
        console.print(self._summary(report))

    def _suite_table(self, suite: SuiteReport) -> Table:
        title = f"{suite.name}" + (" [yellow](aborted)[/yellow]" if suite.aborted else "")
        table = Table(title=title, title_justify="left", show_lines=False)
        table.add_column("#", justify="right", style="dim")
        table.add_column("", width=1)
        table.add_column("Test")
        table.add_column("Step")
        table.add_column("Details", overflow="fold")
        table.add_column("ms", justify="right", style="dim")

        for step in suite.steps:
            if step.success and not self.show_passed:
                continue
            symbol, style = STATE_STYLES[step.state]
            table.add_row(
                str(step.id),
                Text(symbol, style=style),
                self._test_label(step),
                step.name + (f" @{step.alias}" if step.alias else ""),
                self._details(step),
                f"{step.duration_ms:.0f}",
            )
        return table

    def _test_label(self, step: StepReport) -> str:
        if step.hook:
            return f"{step.hook} hook"
        return step.test or ""

    def _details(self, step: StepReport) -> Text:
        if step.failed:
            return Text(f"[{step.error_kind}] {step.error}", style="red")
        if step.skipped:
            return Text("not run", style="yellow")
        if step.response:
            return Text(f"HTTP {step.response.get('status')}", style="dim")
        return Text("")

    def _summary(self, report: RunReport) -> Text:
        style = "bold green" if report.success else "bold red"
        verdict = "PASSED" if report.success else "FAILED"
        return Text(
            f"{verdict}: {report.passed_steps} passed, {report.failed_steps} failed, "
            f"{report.skipped_steps} skipped in {report.duration_ms / 1000:.2f}s",
            style=style,
        )
