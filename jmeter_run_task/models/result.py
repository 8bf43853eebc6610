"""Models for scan findings and batch results."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, kw_only=True)
class ScanFindings:
    """Markers found in one result file."""

    result_file: Path
    errors: int = 0
    failures: int = 0


@dataclass(frozen=True, kw_only=True)
class ScanWarning:
    """Problems in a result file that the scan policy does not ignore."""

    result_file: Path
    errors: int
    failures: int

    @property
    def message(self) -> str:
        """Human readable description of the problems."""
        return (
            f"{self.result_file.name}: {self.errors} error(s), "
            f"{self.failures} failure(s)"
        )


@dataclass(frozen=True, kw_only=True)
class TaskResult:
    """Outcome of a batch of runs."""

    __test__ = False

    result_files: Sequence[Path] = field(default_factory=tuple)
    report_files: Sequence[Path] = field(default_factory=tuple)
    warnings: Sequence[ScanWarning] = field(default_factory=tuple)
    interrupted: bool = False
