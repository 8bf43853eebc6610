"""Fixtures for module tests running the CLI end to end."""

import json
import subprocess
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

import pytest
import yaml

FAKE_ENGINE_COMMAND = [sys.executable, "-m", "jmeter_run_task.testing.fake_engine"]


class RunCliFn(Protocol):
    """Protocol for CLI invocation function."""

    def __call__(self, *args: str) -> subprocess.CompletedProcess[str]:
        """Run the CLI with extra arguments and return the finished process."""


class WritePlanFn(Protocol):
    """Protocol for test plan creation function."""

    def __call__(self, name: str, **plan: Any) -> Path:
        """Write a plan for the fake engine and return its path."""


def build_command(project: Path, *args: str) -> list[str]:
    """Build the CLI command line for the project using the external engine."""
    return [
        sys.executable,
        "-m",
        "jmeter_run_task.cli",
        "--engine",
        "external",
        "--engine-config",
        json.dumps({"command": FAKE_ENGINE_COMMAND}),
        "--project-dir",
        str(project),
        "--poll-interval",
        "0.05",
        *args,
    ]


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Create an empty project with the conventional source directory."""
    (tmp_path / "src" / "test" / "jmeter").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def write_plan(project: Path) -> WritePlanFn:
    """Return a function to create test plans."""

    def _write(name: str, **plan: Any) -> Path:
        path = project / "src" / "test" / "jmeter" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(plan or {"outcome": "success"}))
        return path

    return _write


@pytest.fixture
def run_cli(project: Path) -> RunCliFn:
    """Return a function running the CLI against the project."""

    def _run(*args: str) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            build_command(project, *args),
            cwd=project,
            capture_output=True,
            text=True,
            timeout=120,
        )

    return _run


@pytest.fixture
def cli_command(project: Path) -> Callable[..., list[str]]:
    """Return a function building the CLI command line for the project."""

    def _command(*args: str) -> list[str]:
        return build_command(project, *args)

    return _command
