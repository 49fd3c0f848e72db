"""JSON reporter for structured run output.

Example:
    >>> reporter = JSONReporter(indent=4)
    >>> data = json.loads(reporter.generate(report))
    >>> data["summary"]["failed_steps"]
    0
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from stepqa.core.models import RunReport
from stepqa.reporters.base import BaseReporter


class JSONReporter(BaseReporter):
    """Generate JSON reports for programmatic consumption."""

    @property
    def file_extension(self) -> str:
        return ".json"

    def __init__(self, output_path: str | Path | None = None, indent: int | None = 2) -> None:
        super().__init__(output_path)
        self.indent = indent

    def generate(self, report: RunReport) -> str:
        return json.dumps(self._build_report(report), indent=self.indent, default=self._json_serializer)

    def _build_report(self, report: RunReport) -> dict[str, Any]:
        data = report.to_dict()
        suites = data.pop("suites")
        return {
            "report": {"generated_at": datetime.now().isoformat(), "version": "1.0"},
            "summary": data,
            "suites": suites,
        }

    def _json_serializer(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        return str(obj)
