"""Batch task running every discovered test plan in sequence."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from jmeter_run_task.arguments import prepare_run_request
from jmeter_run_task.collector import ResultCollector
from jmeter_run_task.config import RunTaskConfig
from jmeter_run_task.discovery import resolve_test_files
from jmeter_run_task.engines.base import LoadEngine
from jmeter_run_task.environment import load_engine_version, prepare_environment
from jmeter_run_task.error_scanner import ErrorScanner
from jmeter_run_task.errors import IOFailure, RunFailure, RunInterrupted
from jmeter_run_task.models.result import ScanWarning, TaskResult
from jmeter_run_task.models.run import (
    Completed,
    CompletedWithNonZeroCode,
    Interrupted,
)
from jmeter_run_task.report import ReportRenderer
from jmeter_run_task.supervisor import RunSupervisor

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class RunTask:
    """Runs the configured test plans one after another on an engine.

    Runs are strictly sequential: an in-process engine shares global process
    hooks between runs, and a later run must never race an earlier one.
    """

    config: RunTaskConfig
    engine: LoadEngine
    today: Callable[[], date] = date.today
    interrupt_event: asyncio.Event = field(default_factory=asyncio.Event, init=False)

    def interrupt(self) -> None:
        """Stop the current run and skip the remaining ones."""
        self.interrupt_event.set()

    async def execute(self) -> TaskResult:
        """Run the batch.

        Returns:
            Result files, reports and scan warnings of the batch

        Raises:
            ConfigurationError: If the engine version can't be determined
            InvalidInputError: If a declared test file is missing
            RunFailure: If a run ends with a nonzero status, or the scan
                finds problems and the config says to fail on them
            RunInterrupted: If the batch was interrupted; completed runs
                are reported and scanned first
            IOFailure: If a file can't be read or written

        """
        config = self.config
        version = load_engine_version(config.jmeter_version)
        environment = prepare_environment(
            build_dir=config.build_dir,
            working_dir=config.project_dir,
            version=version,
            classpath=config.classpath,
            plugin_jars=config.plugin_jars,
        )
        test_files = resolve_test_files(
            config.src_dir, config.test_files, config.includes, config.excludes
        )
        self._prepare_report_dir()

        supervisor = RunSupervisor(
            engine=self.engine,
            log_file=environment.log_file,
            properties=environment.properties,
            poll_interval=config.poll_interval,
            interrupt_event=self.interrupt_event,
        )

        log.info("Running %d test plan(s)...", len(test_files))
        collector = ResultCollector()
        interrupted = await self._run_all(supervisor, test_files, collector)

        report_files: Sequence[Path] = ()
        if config.enable_reports:
            renderer = ReportRenderer.from_template(
                config.report_xslt, config.report_dir, config.report_postfix
            )
            report_files = collector.render_reports(renderer)

        warnings = collector.scan(
            ErrorScanner(
                ignore_error=config.ignore_error,
                ignore_failure=config.ignore_failure,
            )
        )

        result = TaskResult(
            result_files=collector.result_files,
            report_files=report_files,
            warnings=warnings,
            interrupted=interrupted,
        )

        if interrupted:
            raise RunInterrupted("Test run was interrupted", result)
        if warnings and config.fail_on_scan_problems:
            raise RunFailure(_describe(warnings), code=1)
        return result

    async def _run_all(
        self,
        supervisor: RunSupervisor,
        test_files: Sequence[Path],
        collector: ResultCollector,
    ) -> bool:
        """Run every test plan; return True if the batch was interrupted."""
        for test_file in test_files:
            if self.interrupt_event.is_set():
                log.warning("Test run interrupted before %s", test_file.name)
                return True

            request = prepare_run_request(
                test_file,
                src_dir=self.config.src_dir,
                report_dir=self.config.report_dir,
                working_dir=self.config.project_dir,
                user_properties=self.config.user_properties,
                remote=self.config.remote,
                today=self.today(),
            )
            log.info("Executing test plan %s", test_file)

            match await supervisor.run(request):
                case Completed(result_file=result_file):
                    collector.add(result_file)
                case CompletedWithNonZeroCode(code=code, message=message):
                    raise RunFailure(
                        f"Test failed: {test_file.name}: {message}", code=code
                    )
                case Interrupted():
                    log.warning("Test run interrupted during %s", test_file.name)
                    return True

        return False

    def _prepare_report_dir(self) -> None:
        try:
            self.config.report_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise IOFailure(
                f"Can't create report directory {self.config.report_dir}",
                path=self.config.report_dir,
                phase="setup",
            ) from exc


def _describe(warnings: Sequence[ScanWarning]) -> str:
    return "Test results contain problems: " + "; ".join(
        warning.message for warning in warnings
    )
