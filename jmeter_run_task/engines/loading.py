"""Loading of engines from entry points."""

import logging
from importlib.metadata import entry_points
from typing import Any

from jmeter_run_task.engines.manifest import EngineManifest
from jmeter_run_task.errors import ConfigurationError

log = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "jmeter_run_task.engines"


class EngineNotFoundError(ConfigurationError):
    """Raised when no engine is registered under the requested key."""


def load_engine_manifest(key: str) -> EngineManifest[Any]:
    """Load an engine manifest by key.

    Engines are registered by installed distributions under the
    ``jmeter_run_task.engines`` entry point group, so third-party packages can
    add their own way of launching the engine.

    Args:
        key: The engine key as registered in pyproject.toml
             (e.g., "in-process", "external")

    Returns:
        The engine manifest instance

    Raises:
        EngineNotFoundError: If no engine with the given key is found
        ConfigurationError: If the entry point does not name an engine manifest

    """
    entries = entry_points(group=ENTRY_POINT_GROUP)

    for entry in entries:
        if entry.name != key:
            continue
        manifest = entry.load()
        if not isinstance(manifest, EngineManifest):
            raise ConfigurationError(
                f"Entry point '{key}' ({entry.value}) is not an engine manifest"
            )
        log.debug("Loaded engine '%s' from %s", key, entry.value)
        return manifest

    available = sorted(e.name for e in entries)
    raise EngineNotFoundError(
        f"Engine '{key}' not found. Available engines: {available}"
    )
