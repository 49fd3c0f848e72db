"""Abstract base reporter class.

Reporters turn a RunReport into an output format for a consumer: a JSON
document for CI tooling, a console table for humans.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stepqa.core.models import RunReport


class BaseReporter(ABC):
    """Abstract base class for all reporters.

    Attributes:
        output_path: Optional default path for saving reports.
    """

    def __init__(self, output_path: str | Path | None = None) -> None:
        self.output_path = Path(output_path) if output_path else None

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """File extension including the dot, e.g. ``.json``."""

    @abstractmethod
    def generate(self, report: RunReport) -> str:
        """Render the report as text."""

    def save(self, report: RunReport, path: str | Path | None = None) -> Path:
        """Render the report and write it to ``path`` (or the default path).

        Parent directories are created as needed.
        """
        target = Path(path) if path else self.output_path
        if target is None:
            raise ValueError("No output path given and no default output_path configured")
        if not target.suffix:
            target = target.with_suffix(self.file_extension)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.generate(report), encoding="utf-8")
        return target
