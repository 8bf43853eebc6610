"""Prepare the files and properties the engine expects before a batch."""

import logging
import os
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from importlib.resources import files
from importlib.resources.abc import Traversable
from pathlib import Path

from jmeter_run_task.errors import ConfigurationError, IOFailure

log = logging.getLogger(__name__)

PLUGIN_PROPERTIES = "plugin.properties"
VERSION_PROPERTY = "jmeter.version"
DEFAULT_PROPERTY_FILES = ("saveservice.properties", "upgrade.properties")
WORK_DIR_NAME = "jmeter"
LOG_FILE_NAME = "jmeter.log"

BSH_JAR = re.compile(r"^.*bsh.*[.]jar$")


def _resources() -> Traversable:
    return files("jmeter_run_task") / "resources"


@dataclass(frozen=True, kw_only=True)
class EngineEnvironment:
    """Work directory, log file and system properties shared by all runs."""

    work_dir: Path
    log_file: Path
    properties: Mapping[str, str]


def parse_properties(text: str) -> dict[str, str]:
    """Parse ``key=value`` lines, skipping blanks and ``#``/``!`` comments."""
    properties: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith(("#", "!")):
            continue
        key, _, value = line.partition("=")
        properties[key.strip()] = value.strip()
    return properties


def load_engine_version(override: str | None = None) -> str:
    """Return the engine version the search path is resolved for.

    Raises:
        ConfigurationError: If no version is configured or packaged

    """
    if override:
        return override

    try:
        text = (_resources() / PLUGIN_PROPERTIES).read_text(encoding="utf-8")
    except OSError as exc:
        message = "Can't load JMeter version, build will stop"
        log.error(message)
        raise ConfigurationError(message) from exc

    version = parse_properties(text).get(VERSION_PROPERTY)
    if not version:
        raise ConfigurationError(
            f"You should set correct {VERSION_PROPERTY} in {PLUGIN_PROPERTIES}"
        )
    return version


def prepare_work_dir(build_dir: Path) -> Path:
    """Create ``<build_dir>/jmeter`` and return it."""
    work_dir = build_dir / WORK_DIR_NAME
    try:
        work_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise IOFailure(
            f"Can't create work directory {work_dir}", path=work_dir, phase="setup"
        ) from exc
    return work_dir


def write_default_properties(work_dir: Path) -> Sequence[Path]:
    """Write the packaged engine property files into the work directory."""
    written: list[Path] = []
    for name in DEFAULT_PROPERTY_FILES:
        target = work_dir / name
        try:
            target.write_text(
                (_resources() / name).read_text(encoding="utf-8"), encoding="utf-8"
            )
        except OSError as exc:
            raise IOFailure(
                f"Couldn't create temporary property file {name} "
                f"in directory {work_dir}",
                path=target,
                phase="setup",
            ) from exc
        written.append(target)
    return written


def resolve_search_paths(
    classpath: Iterable[Path], version: str, plugin_jars: Sequence[str] = ()
) -> str:
    """Select the jars the engine should search for plugins.

    Keeps the engine's own jars at ``version``, BeanShell jars, and jars whose
    path ends with one of ``plugin_jars`` (regular expressions). Every entry
    is followed by ``;``.
    """
    engine_jar = re.compile(
        rf"^.*org[.]apache[.]jmeter/jmeter-.*{re.escape(version)}[.]jar$"
    )
    plugins = [re.compile(rf"^.*{plugin}$") for plugin in plugin_jars]

    search_paths = ""
    for entry in classpath:
        path = entry.as_posix()
        if engine_jar.match(path) or BSH_JAR.match(path):
            search_paths += path + ";"
        elif any(plugin.match(path) for plugin in plugins):
            search_paths += path + ";"
    return search_paths


def _engine_relative(path: Path, working_dir: Path) -> str:
    try:
        return os.sep + str(path.relative_to(working_dir))
    except ValueError:
        return str(path)


def prepare_environment(
    *,
    build_dir: Path,
    working_dir: Path,
    version: str,
    classpath: Iterable[Path] = (),
    plugin_jars: Sequence[str] = (),
) -> EngineEnvironment:
    """Create the work directory and compute the engine system properties.

    Property file locations are given relative to the engine working
    directory when they live below it.
    """
    work_dir = prepare_work_dir(build_dir)
    log_file = (work_dir / LOG_FILE_NAME).resolve()
    saveservice, upgrade = write_default_properties(work_dir)

    properties = {
        "log_file": str(log_file),
        "saveservice_properties": _engine_relative(
            saveservice.resolve(), working_dir.resolve()
        ),
        "upgrade_properties": _engine_relative(
            upgrade.resolve(), working_dir.resolve()
        ),
        "search_paths": resolve_search_paths(classpath, version, plugin_jars),
    }
    log.debug("Engine system properties: %s", properties)

    return EngineEnvironment(
        work_dir=work_dir, log_file=log_file, properties=properties
    )
