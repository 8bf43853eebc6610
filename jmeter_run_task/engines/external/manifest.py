"""External engine manifest."""

from jmeter_run_task.engines.external.config import ExternalConfig
from jmeter_run_task.engines.external.engine import ExternalEngine
from jmeter_run_task.engines.manifest import EngineManifest

external_manifest = EngineManifest(
    config_cls=ExternalConfig,
    engine_factory=ExternalEngine.from_config,
)
