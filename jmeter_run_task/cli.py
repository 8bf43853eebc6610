"""CLI entry point for the load test run task."""

import argparse
import asyncio
import json
import logging
import signal
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from jmeter_run_task.config import load_task_config
from jmeter_run_task.engines.loading import load_engine_manifest
from jmeter_run_task.errors import RunInterrupted, TaskError
from jmeter_run_task.models.result import TaskResult
from jmeter_run_task.task import RunTask

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

STATUS_SYMBOLS = {
    "success": "✓",
    "warning": "!",
}

OVERRIDE_OPTIONS = (
    "project_dir",
    "build_dir",
    "src_dir",
    "report_dir",
    "test_files",
    "includes",
    "excludes",
    "enable_reports",
    "remote",
    "ignore_failure",
    "ignore_error",
    "fail_on_scan_problems",
    "report_postfix",
    "report_xslt",
    "user_properties",
    "plugin_jars",
    "classpath",
    "jmeter_version",
    "poll_interval",
)


def log_results_summary(log: logging.Logger, result: TaskResult) -> None:
    """Log a formatted summary of the batch."""
    log.info("=" * 80)
    log.info("Load Test Results Summary:")
    log.info("=" * 80)

    warnings = {warning.result_file: warning for warning in result.warnings}
    for result_file in result.result_files:
        warning = warnings.get(result_file)
        status = "warning" if warning else "success"
        log.info("%s %s: %s", STATUS_SYMBOLS[status], result_file.name, status)
        if warning:
            log.info("  Problems: %s", warning.message)

    if result.report_files:
        log.info("Reports written to %s", result.report_files[0].parent)
    if result.interrupted:
        log.info("Test run was interrupted, remaining test plans were skipped")


def format_output(result: TaskResult) -> dict[str, Any]:
    """Format the batch result for JSON output."""
    warnings = {warning.result_file: warning for warning in result.warnings}
    reports = dict(zip(result.result_files, result.report_files, strict=False))

    all_results: list[dict[str, Any]] = []
    for result_file in result.result_files:
        warning = warnings.get(result_file)
        report_file = reports.get(result_file)
        all_results.append(
            {
                "result_file": str(result_file),
                "report_file": str(report_file) if report_file else None,
                "errors": warning.errors if warning else 0,
                "failures": warning.failures if warning else 0,
            }
        )

    return {
        "total": len(all_results),
        "with_problems": len(result.warnings),
        "interrupted": result.interrupted,
        "results": all_results,
    }


def build_overrides(args: argparse.Namespace) -> Mapping[str, Any]:
    """Collect the task settings given on the command line."""
    return {
        name: value
        for name in OVERRIDE_OPTIONS
        if (value := getattr(args, name, None)) is not None
    }


@contextmanager
def interrupt_on_signals(task: RunTask) -> Iterator[None]:
    """Interrupt the task on SIGINT and SIGTERM while the batch runs."""
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, task.interrupt)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform or outside the main thread
            continue
        installed.append(signum)
    try:
        yield
    finally:
        for signum in installed:
            loop.remove_signal_handler(signum)


async def run(
    engine_key: str,
    engine_config_json: str,
    config_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> int:
    """Run the load tests and return exit code."""
    log = logging.getLogger("jmeter_run_task")

    log.info("Loading engine: %s", engine_key)
    try:
        manifest = load_engine_manifest(engine_key)
        config_dict = json.loads(engine_config_json)
        engine = manifest.engine_factory(manifest.config_cls(**config_dict))

        config = load_task_config(config_path, overrides)
        task = RunTask(config=config, engine=engine)
        with interrupt_on_signals(task):
            result = await task.execute()
    except RunInterrupted as exc:
        log.warning("%s", exc)
        log_results_summary(log, exc.result)
        print(json.dumps(format_output(exc.result), indent=2))
        return EXIT_INTERRUPTED
    except TaskError as exc:
        log.error("Load test run failed: %s", exc, exc_info=exc)
        return EXIT_FAILURE

    log_results_summary(log, result)
    print(json.dumps(format_output(result), indent=2))

    return EXIT_SUCCESS


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run load test plans and report on their results"
    )
    parser.add_argument(
        "--engine",
        default="external",
        help="Engine key (external, in-process)",
    )
    parser.add_argument(
        "--engine-config",
        default="{}",
        help="JSON configuration for the engine",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML file with task settings",
    )
    parser.add_argument("--project-dir", type=Path, help="Project root directory")
    parser.add_argument("--build-dir", type=Path, help="Build output directory")
    parser.add_argument("--src-dir", type=Path, help="Directory of test plans")
    parser.add_argument("--report-dir", type=Path, help="Results and reports")
    parser.add_argument(
        "--test-file",
        dest="test_files",
        type=Path,
        action="append",
        help="Test plan to run, instead of scanning the source directory",
    )
    parser.add_argument(
        "--include",
        dest="includes",
        action="append",
        help="Include pattern relative to the source directory",
    )
    parser.add_argument(
        "--exclude",
        dest="excludes",
        action="append",
        help="Exclude pattern relative to the source directory",
    )
    parser.add_argument(
        "--no-reports",
        dest="enable_reports",
        action="store_false",
        default=None,
        help="Don't render HTML reports",
    )
    parser.add_argument(
        "--remote", action="store_true", default=None, help="Use remote servers"
    )
    parser.add_argument(
        "--ignore-failure",
        action="store_true",
        default=None,
        help="Ignore failures in result files",
    )
    parser.add_argument(
        "--ignore-error",
        action="store_true",
        default=None,
        help="Ignore errors in result files",
    )
    parser.add_argument(
        "--fail-on-scan-problems",
        action="store_true",
        default=None,
        help="Exit with failure when result files contain problems",
    )
    parser.add_argument("--report-postfix", help="Report file name postfix")
    parser.add_argument("--report-xslt", type=Path, help="Custom report template")
    parser.add_argument(
        "-J",
        "--property",
        dest="user_properties",
        action="append",
        help="Engine property as key=value",
    )
    parser.add_argument(
        "--plugin-jar",
        dest="plugin_jars",
        action="append",
        help="Plugin jar name to add to the engine search path",
    )
    parser.add_argument(
        "--classpath",
        type=Path,
        action="append",
        help="Jar considered for the engine search path",
    )
    parser.add_argument("--jmeter-version", help="Engine version override")
    parser.add_argument(
        "--poll-interval", type=float, help="Seconds between log file polls"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            engine_key=args.engine,
            engine_config_json=args.engine_config,
            config_path=args.config,
            overrides=build_overrides(args),
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
