"""stepqa CLI - command line interface for stepqa."""

from stepqa.cli.commands import cli


def main() -> None:
    """Main entry point for the stepqa CLI."""
    cli()


__all__ = ["main", "cli"]
