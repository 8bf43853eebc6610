"""Scan result files for error and failure markers."""

from dataclasses import dataclass
from pathlib import Path

from jmeter_run_task.errors import IOFailure
from jmeter_run_task.models.result import ScanFindings, ScanWarning

ERROR_MARKER = "<error>true</error>"
FAILURE_MARKERS = ('s="false"', "<failure>true</failure>")


@dataclass(frozen=True, kw_only=True)
class ErrorScanner:
    """Finds problems in result files, subject to an ignore policy."""

    ignore_error: bool = False
    ignore_failure: bool = False

    def scan(self, result_file: Path) -> ScanFindings:
        """Count error and failure markers in a result file.

        Raises:
            IOFailure: If the result file can't be read

        """
        errors = 0
        failures = 0
        try:
            with result_file.open(encoding="utf-8", errors="replace") as fp:
                for line in fp:
                    if ERROR_MARKER in line:
                        errors += 1
                    if any(marker in line for marker in FAILURE_MARKERS):
                        failures += 1
        except OSError as exc:
            raise IOFailure(
                f"Can't read result file {result_file}",
                path=result_file,
                phase="error scan",
            ) from exc

        return ScanFindings(result_file=result_file, errors=errors, failures=failures)

    def check(self, result_file: Path) -> ScanWarning | None:
        """Return a warning for the problems the policy does not ignore."""
        findings = self.scan(result_file)
        errors = 0 if self.ignore_error else findings.errors
        failures = 0 if self.ignore_failure else findings.failures

        if not errors and not failures:
            return None

        return ScanWarning(result_file=result_file, errors=errors, failures=failures)

    def scan_for_problems(self, result_file: Path) -> bool:
        """Whether a result file has problems the policy does not ignore."""
        return self.check(result_file) is not None
