"""Collect result files across runs and hand them to the reporters."""

import logging
from collections.abc import Sequence
from pathlib import Path

from jmeter_run_task.error_scanner import ErrorScanner
from jmeter_run_task.models.result import ScanWarning
from jmeter_run_task.report import ReportRenderer

log = logging.getLogger(__name__)


class ResultCollector:
    """Result files of completed runs, in run order."""

    def __init__(self) -> None:
        self._result_files: list[Path] = []

    @property
    def result_files(self) -> Sequence[Path]:
        """Collected result files."""
        return tuple(self._result_files)

    def add(self, result_file: Path) -> None:
        """Record the result file of a completed run."""
        self._result_files.append(result_file)

    def render_reports(self, renderer: ReportRenderer) -> Sequence[Path]:
        """Render one report per result file, in order.

        Any rendering error aborts the remaining reports.
        """
        log.info("Building JMeter Report.")
        return [renderer.render(result_file) for result_file in self._result_files]

    def scan(self, scanner: ErrorScanner) -> Sequence[ScanWarning]:
        """Scan every result file and return the warnings found, in order."""
        warnings: list[ScanWarning] = []
        for result_file in self._result_files:
            if (warning := scanner.check(result_file)) is not None:
                log.warning(
                    "There were test errors in %s. See the jmeter logs for details",
                    result_file.name,
                )
                warnings.append(warning)
        return warnings
