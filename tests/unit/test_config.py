"""Tests for task configuration loading."""

from pathlib import Path

import pytest

from jmeter_run_task.config import RunTaskConfig, load_task_config
from jmeter_run_task.errors import ConfigurationError


class TestConventions:
    """Tests for the default project layout."""

    def test_defaults_relative_to_project(self, tmp_path: Path) -> None:
        """Directories follow the project conventions."""
        config = RunTaskConfig(project_dir=tmp_path)

        assert config.src_dir == tmp_path / "src" / "test" / "jmeter"
        assert config.build_dir == tmp_path / "build"
        assert config.report_dir == tmp_path / "build" / "jmeter-report"
        assert config.test_files is None
        assert config.enable_reports is True
        assert config.report_postfix == "-report.html"
        assert config.poll_interval == 1.0

    def test_report_dir_follows_build_dir(self, tmp_path: Path) -> None:
        """The default report directory lives in the configured build dir."""
        config = RunTaskConfig(project_dir=tmp_path, build_dir=Path("out"))

        assert config.report_dir == tmp_path / "out" / "jmeter-report"

    def test_relative_paths_resolved_against_project(self, tmp_path: Path) -> None:
        """Relative paths and test files are taken from the project dir."""
        config = RunTaskConfig(
            project_dir=tmp_path,
            src_dir=Path("perf"),
            report_xslt=Path("perf/report.xsl"),
            test_files=[Path("perf/login.jmx")],
        )

        assert config.src_dir == tmp_path / "perf"
        assert config.report_xslt == tmp_path / "perf" / "report.xsl"
        assert config.test_files == [tmp_path / "perf" / "login.jmx"]

    def test_absolute_paths_kept(self, tmp_path: Path) -> None:
        """Absolute paths are used as given."""
        report_dir = tmp_path / "elsewhere"

        config = RunTaskConfig(project_dir=tmp_path / "p", report_dir=report_dir)

        assert config.report_dir == report_dir

    def test_rejects_non_positive_poll_interval(self, tmp_path: Path) -> None:
        """The poll interval must be positive."""
        with pytest.raises(ConfigurationError):
            load_task_config(overrides={"project_dir": tmp_path, "poll_interval": 0})


class TestLoadTaskConfig:
    """Tests for loading the YAML config."""

    def test_without_file_uses_overrides(self, tmp_path: Path) -> None:
        """Overrides alone are enough."""
        config = load_task_config(
            overrides={"project_dir": tmp_path, "remote": True, "src_dir": None}
        )

        assert config.remote is True
        assert config.src_dir == tmp_path / "src" / "test" / "jmeter"

    def test_reads_yaml(self, tmp_path: Path) -> None:
        """Settings are read from the YAML file."""
        path = tmp_path / "jmeter-task.yaml"
        path.write_text(
            f"project_dir: {tmp_path}\n"
            "ignore_failure: true\n"
            "user_properties:\n"
            "  - threads=10\n"
            "  - host=example.com\n"
            "excludes:\n"
            "  - smoke/\n"
        )

        config = load_task_config(path)

        assert config.ignore_failure is True
        assert list(config.user_properties) == ["threads=10", "host=example.com"]
        assert list(config.excludes or []) == ["smoke/"]

    def test_overrides_take_precedence(self, tmp_path: Path) -> None:
        """Command line settings win over the file."""
        path = tmp_path / "jmeter-task.yaml"
        path.write_text(f"project_dir: {tmp_path}\nreport_postfix: .html\n")

        config = load_task_config(path, {"report_postfix": "-perf.html"})

        assert config.report_postfix == "-perf.html"

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file is a configuration error."""
        with pytest.raises(ConfigurationError, match="Config file not found"):
            load_task_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Malformed YAML is a configuration error."""
        path = tmp_path / "bad.yaml"
        path.write_text("includes: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_task_config(path)

    def test_empty_file(self, tmp_path: Path) -> None:
        """An empty file is a configuration error."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        with pytest.raises(ConfigurationError, match="Empty config file"):
            load_task_config(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        """The document must be a mapping."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="Invalid task config schema"):
            load_task_config(path)

    def test_schema_error(self, tmp_path: Path) -> None:
        """Values of the wrong type are a configuration error."""
        path = tmp_path / "wrong.yaml"
        path.write_text(f"project_dir: {tmp_path}\nremote: sometimes\n")

        with pytest.raises(ConfigurationError, match="Invalid task config schema"):
            load_task_config(path)
