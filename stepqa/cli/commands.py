"""CLI commands for stepqa."""

from __future__ import annotations

import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType

import click
from pydantic import ValidationError
from rich.console import Console

from stepqa.commands import CommandRegistry, default_registry
from stepqa.config import QAConfig, load_config
from stepqa.core.models import FailFastScope
from stepqa.errors import ConfigValidationError
from stepqa.reporters import ConsoleReporter, JSONReporter
from stepqa.runner import Suite, SuiteRunner

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def load_suite_module(path: str | Path) -> ModuleType:
    """Import a suite file by path."""
    path = Path(path)
    spec = importlib.util.spec_from_file_location(f"stepqa_suite_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise click.ClickException(f"Cannot import suite file: {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    logger.debug(f"Loaded suite module {path}")
    return module


def collect_suites(module: ModuleType) -> list[Suite]:
    """Module-level Suite objects, in definition order.

    A module may instead export an explicit ``suites`` list.
    """
    explicit = getattr(module, "suites", None)
    if explicit is not None:
        return list(explicit)
    return [value for value in vars(module).values() if isinstance(value, Suite)]


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to config file")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: str | None) -> None:
    """stepqa - ordered API test steps with aliases and shared state."""
    ctx.ensure_object(dict)

    try:
        config_obj = load_config(config)
    except ConfigValidationError as e:
        raise click.ClickException(e.message) from e
    if verbose:
        config_obj = config_obj.model_copy(update={"verbose": True})

    ctx.obj["config"] = config_obj
    ctx.obj["verbose"] = verbose

    setup_logging(config_obj.verbose)


@cli.command()
@click.argument("modules", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--fail-fast/--no-fail-fast", default=None, help="Skip remaining steps after a failure")
@click.option(
    "--scope",
    type=click.Choice([s.value for s in FailFastScope]),
    default=None,
    help="How far a fail-fast abort reaches",
)
@click.option("--base-url", default=None, help="Override the configured base URL")
@click.option("--report-json", type=click.Path(dir_okay=False), default=None, help="Write a JSON report")
@click.option("--failures-only", is_flag=True, help="Hide passed steps in console output")
@click.pass_context
def run(
    ctx: click.Context,
    modules: tuple[str, ...],
    fail_fast: bool | None,
    scope: str | None,
    base_url: str | None,
    report_json: str | None,
    failures_only: bool,
) -> None:
    """Run the suites defined in MODULES, in order.

    Each module is a Python file defining ``Suite`` objects. A module may
    define ``register_commands(registry)`` to add custom commands.
    """
    config: QAConfig = ctx.obj["config"]
    if base_url:
        try:
            config = QAConfig.model_validate({**config.model_dump(), "base_url": base_url})
        except ValidationError as e:
            raise click.BadParameter(e.errors()[0]["msg"], param_hint="--base-url") from e

    registry: CommandRegistry = default_registry()
    suites: list[Suite] = []
    for path in modules:
        module = load_suite_module(path)
        hook = getattr(module, "register_commands", None)
        if callable(hook):
            hook(registry)
        found = collect_suites(module)
        if not found:
            click.echo(f"No suites found in {path}", err=True)
        suites.extend(found)

    if not suites:
        click.echo("Nothing to run.", err=True)
        sys.exit(2)

    runner = SuiteRunner(config=config, commands=registry, fail_fast=fail_fast, fail_fast_scope=scope)
    report = runner.run(suites)

    if "console" in config.report_formats:
        ConsoleReporter(console=Console(), show_passed=not failures_only).render(report)

    json_target = report_json
    if json_target is None and "json" in config.report_formats:
        json_target = str(Path(config.report_dir) / "stepqa-report.json")
    if json_target:
        saved = JSONReporter().save(report, json_target)
        click.echo(f"JSON report written to {saved}")

    sys.exit(report.exit_code)


@cli.command("commands")
@click.argument("modules", nargs=-1, type=click.Path(exists=True, dir_okay=False))
def list_commands(modules: tuple[str, ...]) -> None:
    """List registered commands, including those added by MODULES."""
    registry = default_registry()
    for path in modules:
        hook = getattr(load_suite_module(path), "register_commands", None)
        if callable(hook):
            hook(registry)
    for name in registry.names():
        click.echo(name)


@cli.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show the effective configuration (credentials masked)."""
    cfg: QAConfig = ctx.obj["config"]
    data = cfg.model_dump(mode="json")
    data["env"] = {key: "***" for key in data.get("env", {})}
    for key, value in data.items():
        click.echo(f"{key}: {value}")
