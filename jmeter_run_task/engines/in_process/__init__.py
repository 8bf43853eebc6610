"""In-process engine module."""

from jmeter_run_task.engines.in_process.config import InProcessConfig
from jmeter_run_task.engines.in_process.engine import InProcessEngine
from jmeter_run_task.engines.in_process.manifest import in_process_manifest

__all__ = ["InProcessConfig", "InProcessEngine", "in_process_manifest"]
