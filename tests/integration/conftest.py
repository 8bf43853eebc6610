"""Fixtures for integration tests."""

from pathlib import Path
from typing import Any, Protocol

import pytest
import yaml


class WritePlanFn(Protocol):
    """Protocol for test plan creation function."""

    def __call__(self, name: str, **plan: Any) -> Path:
        """Write a plan for the fake engine and return its path."""


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Create an empty project with the conventional source directory."""
    (tmp_path / "src" / "test" / "jmeter").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def src_dir(project: Path) -> Path:
    """Return the project's test plan directory."""
    return project / "src" / "test" / "jmeter"


@pytest.fixture
def write_plan(src_dir: Path) -> WritePlanFn:
    """Return a function to create test plans."""

    def _write(name: str, **plan: Any) -> Path:
        path = src_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(plan or {"outcome": "success"}))
        return path

    return _write
