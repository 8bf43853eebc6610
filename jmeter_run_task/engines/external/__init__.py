"""External engine module."""

from jmeter_run_task.engines.external.config import ExternalConfig
from jmeter_run_task.engines.external.engine import ExternalEngine
from jmeter_run_task.engines.external.manifest import external_manifest

__all__ = ["ExternalConfig", "ExternalEngine", "external_manifest"]
