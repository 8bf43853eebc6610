"""Tests for CLI module."""

import argparse
import json
import logging
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest

from jmeter_run_task.cli import (
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    build_overrides,
    format_output,
    log_results_summary,
    run,
)
from jmeter_run_task.errors import InvalidInputError, RunFailure, RunInterrupted
from jmeter_run_task.models.result import ScanWarning, TaskResult
from jmeter_run_task.testing.factories import ScanWarningFactory

RESULT_A = Path("/r/a.jmx-20240131.xml")
RESULT_B = Path("/r/b.jmx-20240131.xml")
REPORT_A = Path("/r/a.jmx-20240131-report.html")
REPORT_B = Path("/r/b.jmx-20240131-report.html")


@pytest.fixture
def task_result() -> TaskResult:
    """Build a batch result with one problem file."""
    return TaskResult(
        result_files=(RESULT_A, RESULT_B),
        report_files=(REPORT_A, REPORT_B),
        warnings=(ScanWarning(result_file=RESULT_B, errors=1, failures=2),),
    )


def test_log_results_summary(
    task_result: TaskResult, caplog: pytest.LogCaptureFixture
) -> None:
    """Logs each result file with its status and problems."""
    with caplog.at_level(logging.INFO):
        log_results_summary(logging.getLogger(), task_result)

    assert "Load Test Results Summary:" in caplog.text
    assert "✓ a.jmx-20240131.xml: success" in caplog.text
    assert "! b.jmx-20240131.xml: warning" in caplog.text
    assert "Problems: b.jmx-20240131.xml: 1 error(s), 2 failure(s)" in caplog.text
    assert "Reports written to /r" in caplog.text


def test_log_results_summary_interrupted(caplog: pytest.LogCaptureFixture) -> None:
    """Mentions an interruption."""
    with caplog.at_level(logging.INFO):
        log_results_summary(logging.getLogger(), TaskResult(interrupted=True))

    assert "Test run was interrupted" in caplog.text


def test_format_output_empty() -> None:
    """Returns empty totals when no results."""
    output = format_output(TaskResult())

    assert output == {
        "total": 0,
        "with_problems": 0,
        "interrupted": False,
        "results": [],
    }


def test_format_output(task_result: TaskResult) -> None:
    """Formats every result file with its report and problem counts."""
    output = format_output(task_result)

    assert output["total"] == 2
    assert output["with_problems"] == 1
    assert output["results"] == [
        {
            "result_file": str(RESULT_A),
            "report_file": str(REPORT_A),
            "errors": 0,
            "failures": 0,
        },
        {
            "result_file": str(RESULT_B),
            "report_file": str(REPORT_B),
            "errors": 1,
            "failures": 2,
        },
    ]


def test_format_output_without_reports() -> None:
    """Report files are null when reports are disabled."""
    warning = ScanWarningFactory.build(result_file=RESULT_A)

    output = format_output(TaskResult(result_files=(RESULT_A,), warnings=(warning,)))

    assert output["results"][0]["report_file"] is None
    assert output["results"][0]["errors"] == warning.errors


def test_build_overrides_skips_unset_options() -> None:
    """Only options given on the command line become overrides."""
    args = argparse.Namespace(
        engine="external",
        project_dir=Path("/p"),
        remote=None,
        enable_reports=False,
        user_properties=["a=1"],
        report_postfix=None,
    )

    assert build_overrides(args) == {
        "project_dir": Path("/p"),
        "enable_reports": False,
        "user_properties": ["a=1"],
    }


class TestRun:
    """Tests for run function."""

    @pytest.fixture
    def mock_task(self) -> Mock:
        """Create mock task."""
        task = Mock()
        task.execute = AsyncMock(return_value=TaskResult())
        return task

    async def run_with(self, mock_task: Mock, tmp_path: Path) -> int:
        """Run the CLI with a mocked engine manifest and task."""
        with (
            patch("jmeter_run_task.cli.load_engine_manifest") as mock_load_manifest,
            patch("jmeter_run_task.cli.RunTask", return_value=mock_task),
        ):
            mock_manifest = Mock()
            mock_manifest.config_cls = Mock(return_value=Mock())
            mock_load_manifest.return_value = mock_manifest

            return await run(
                engine_key="external",
                engine_config_json='{"command": ["jmeter"]}',
                overrides={"project_dir": tmp_path},
            )

    async def test_returns_zero_on_success(
        self,
        mock_task: Mock,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Returns 0 and prints the results as JSON."""
        mock_task.execute.return_value = TaskResult(result_files=(RESULT_A,))

        exit_code = await self.run_with(mock_task, tmp_path)

        assert exit_code == EXIT_SUCCESS
        output = json.loads(capsys.readouterr().out)
        assert output["total"] == 1

    async def test_returns_zero_with_scan_warnings(
        self, mock_task: Mock, tmp_path: Path, task_result: TaskResult
    ) -> None:
        """Problems in results don't change the exit code by default."""
        mock_task.execute.return_value = task_result

        assert await self.run_with(mock_task, tmp_path) == EXIT_SUCCESS

    async def test_returns_one_on_run_failure(
        self,
        mock_task: Mock,
        tmp_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Returns 1 when a run fails."""
        mock_task.execute.side_effect = RunFailure("Test failed: a.jmx", code=3)

        with caplog.at_level(logging.ERROR):
            exit_code = await self.run_with(mock_task, tmp_path)

        assert exit_code == EXIT_FAILURE
        assert "Load test run failed: Test failed: a.jmx" in caplog.text

    async def test_returns_one_on_invalid_input(
        self, mock_task: Mock, tmp_path: Path
    ) -> None:
        """Returns 1 when a test file is missing."""
        mock_task.execute.side_effect = InvalidInputError("missing")

        assert await self.run_with(mock_task, tmp_path) == EXIT_FAILURE

    async def test_returns_interrupted_code(
        self,
        mock_task: Mock,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Returns 130 and still prints the partial results."""
        partial = TaskResult(result_files=(RESULT_A,), interrupted=True)
        mock_task.execute.side_effect = RunInterrupted("interrupted", partial)

        exit_code = await self.run_with(mock_task, tmp_path)

        assert exit_code == EXIT_INTERRUPTED
        output = json.loads(capsys.readouterr().out)
        assert output["interrupted"] is True
        assert output["total"] == 1

    async def test_returns_one_on_unknown_engine(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Returns 1 and logs the registered engines for an unknown key."""
        exit_code = await run(engine_key="unknown-engine", engine_config_json="{}")

        assert exit_code == EXIT_FAILURE
        assert "Engine 'unknown-engine' not found" in caplog.text

    async def test_returns_one_on_invalid_config(self, tmp_path: Path) -> None:
        """Returns 1 when the task config can't be loaded."""
        with patch("jmeter_run_task.cli.load_engine_manifest") as mock_load_manifest:
            mock_manifest = Mock()
            mock_manifest.config_cls = Mock(return_value=Mock())
            mock_load_manifest.return_value = mock_manifest

            exit_code = await run(
                engine_key="external",
                engine_config_json="{}",
                config_path=tmp_path / "missing.yaml",
            )

        assert exit_code == EXIT_FAILURE

    async def test_builds_engine_from_config_json(
        self, mock_task: Mock, tmp_path: Path
    ) -> None:
        """The engine config JSON is validated by the manifest's config class."""
        with (
            patch("jmeter_run_task.cli.load_engine_manifest") as mock_load_manifest,
            patch("jmeter_run_task.cli.RunTask", return_value=mock_task) as task_cls,
        ):
            mock_manifest = Mock()
            mock_manifest.config_cls = Mock(return_value="config")
            mock_load_manifest.return_value = mock_manifest

            await run(
                engine_key="in-process",
                engine_config_json='{"entry": "pkg.module:main"}',
                overrides={"project_dir": tmp_path},
            )

        mock_load_manifest.assert_called_once_with("in-process")
        mock_manifest.config_cls.assert_called_once_with(entry="pkg.module:main")
        mock_manifest.engine_factory.assert_called_once_with("config")
        assert task_cls.call_args.kwargs["engine"] is (
            mock_manifest.engine_factory.return_value
        )
