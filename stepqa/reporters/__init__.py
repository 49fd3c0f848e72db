"""Run report output formats."""

from stepqa.reporters.base import BaseReporter
from stepqa.reporters.console import ConsoleReporter
from stepqa.reporters.json_report import JSONReporter

__all__ = ["BaseReporter", "ConsoleReporter", "JSONReporter"]
