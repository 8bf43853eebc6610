"""In-process engine manifest."""

from jmeter_run_task.engines.in_process.config import InProcessConfig
from jmeter_run_task.engines.in_process.engine import InProcessEngine
from jmeter_run_task.engines.manifest import EngineManifest

in_process_manifest = EngineManifest(
    config_cls=InProcessConfig,
    engine_factory=InProcessEngine.from_config,
)
