"""Configuration of the run task and its conventions."""

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, model_validator

from jmeter_run_task.errors import ConfigurationError
from jmeter_run_task.models.base import Model
from jmeter_run_task.report import DEFAULT_REPORT_POSTFIX
from jmeter_run_task.watcher import DEFAULT_POLL_INTERVAL

DEFAULT_SRC_DIR = Path("src", "test", "jmeter")
DEFAULT_BUILD_DIR = Path("build")
DEFAULT_REPORT_DIR_NAME = "jmeter-report"

PROJECT_RELATIVE_FIELDS = ("build_dir", "src_dir", "report_dir", "report_xslt")


class RunTaskConfig(Model):
    """Settings of one batch of load test runs.

    Directories default to the project conventions: test plans under
    ``src/test/jmeter``, results and reports under ``build/jmeter-report``.
    Relative paths are resolved against ``project_dir``.
    """

    project_dir: Path = Field(
        default_factory=Path.cwd, description="Project root and engine working dir"
    )
    build_dir: Path = Field(default=DEFAULT_BUILD_DIR, description="Build output")
    src_dir: Path = Field(default=DEFAULT_SRC_DIR, description="Test plan directory")
    report_dir: Path = Field(
        default=DEFAULT_BUILD_DIR / DEFAULT_REPORT_DIR_NAME,
        description="Result and report directory",
    )
    test_files: Sequence[Path] | None = Field(
        default=None, description="Explicit test plans; disables the directory scan"
    )
    includes: Sequence[str] | None = Field(
        default=None, description="Include patterns relative to src_dir"
    )
    excludes: Sequence[str] | None = Field(
        default=None, description="Exclude patterns relative to src_dir"
    )
    enable_reports: bool = Field(default=True, description="Render HTML reports")
    remote: bool = Field(default=False, description="Run on remote engine servers")
    ignore_failure: bool = Field(
        default=False, description="Ignore failure markers in results"
    )
    ignore_error: bool = Field(
        default=False, description="Ignore error markers in results"
    )
    fail_on_scan_problems: bool = Field(
        default=False, description="Fail the batch when the scan finds problems"
    )
    report_postfix: str = Field(default=DEFAULT_REPORT_POSTFIX, min_length=1)
    report_xslt: Path | None = Field(default=None, description="Custom XSLT")
    user_properties: Sequence[str] = Field(
        default_factory=tuple, description="Engine properties as key=value"
    )
    plugin_jars: Sequence[str] = Field(
        default_factory=tuple, description="Plugin jar name patterns"
    )
    classpath: Sequence[Path] = Field(
        default_factory=tuple, description="Jars considered for the search path"
    )
    jmeter_version: str | None = Field(
        default=None, description="Overrides the packaged engine version"
    )
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)

    @model_validator(mode="before")
    @classmethod
    def _apply_conventions(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data

        values = {key: value for key, value in data.items() if value is not None}
        project_dir = Path(values.get("project_dir") or Path.cwd())
        values["project_dir"] = project_dir

        for name in PROJECT_RELATIVE_FIELDS:
            if name in values:
                values[name] = project_dir / Path(values[name])

        values.setdefault("build_dir", project_dir / DEFAULT_BUILD_DIR)
        values.setdefault("src_dir", project_dir / DEFAULT_SRC_DIR)
        values.setdefault(
            "report_dir", Path(values["build_dir"]) / DEFAULT_REPORT_DIR_NAME
        )
        if "test_files" in values:
            values["test_files"] = [
                project_dir / Path(test_file) for test_file in values["test_files"]
            ]
        return values


def load_task_config(
    path: Path | None = None, overrides: Mapping[str, Any] | None = None
) -> RunTaskConfig:
    """Load the task configuration from a YAML file.

    Args:
        path: YAML file with task settings, or None for conventions only
        overrides: Settings taking precedence over the file (e.g. from the
            command line); None values are ignored

    Raises:
        ConfigurationError: If the file is missing, invalid or doesn't match
            the schema

    """
    data: dict[str, Any] = {}
    if path is not None:
        data.update(_read_yaml(path))

    data.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        return RunTaskConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid task config schema: {exc}") from exc


def _read_yaml(path: Path) -> Mapping[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Config file not found: {path}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Can't read config file {path}: {exc}") from exc

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        raise ConfigurationError(f"Empty config file: {path}")
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Invalid task config schema in {path}")
    return data
