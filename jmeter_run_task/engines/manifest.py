"""Engine manifest definition for the plugin system."""

from collections.abc import Callable
from dataclasses import dataclass

from pydantic import BaseModel

from jmeter_run_task.engines.base import LoadEngine


@dataclass(frozen=True, kw_only=True)
class EngineManifest[ConfigT: BaseModel]:
    """Manifest describing an engine plugin.

    The manifest contains references to the configuration class and the
    engine factory so that engines can be loaded lazily by key.
    """

    config_cls: type[ConfigT]
    engine_factory: Callable[[ConfigT], LoadEngine]
