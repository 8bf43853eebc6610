"""Engine running the load-testing tool as a child process."""

import asyncio
import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from jmeter_run_task.engines.base import LoadEngine, RunContext
from jmeter_run_task.engines.external.config import ExternalConfig
from jmeter_run_task.errors import IOFailure

log = logging.getLogger(__name__)


def build_environment(
    base: Mapping[str, str],
    extra: Mapping[str, str],
    properties: Mapping[str, str],
) -> dict[str, str]:
    """Return the child environment with engine properties in ``JVM_ARGS``.

    Engine properties become ``-Dkey=value`` JVM system properties, appended
    to any ``JVM_ARGS`` already present.
    """
    env = {**base, **extra}
    system_properties = " ".join(
        f"-D{key}={value}" for key, value in properties.items()
    )
    if system_properties:
        env["JVM_ARGS"] = f"{env.get('JVM_ARGS', '')} {system_properties}".strip()
    return env


async def relay_output(stream: asyncio.StreamReader) -> None:
    """Log each line the engine process prints."""
    async for line in stream:
        log.info("engine: %s", line.decode(errors="replace").rstrip())


@dataclass(frozen=True, kw_only=True)
class ExternalEngine(LoadEngine):
    """Runs each test plan in its own engine process.

    The process exit status is the run's exit status, so no interception of
    the host process is needed. Whatever the process prints is logged.
    """

    command: Sequence[str]
    env: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: ExternalConfig) -> "ExternalEngine":
        """Create the engine from its configuration."""
        return cls(command=tuple(config.command), env=dict(config.env))

    async def start(self, args: Sequence[str], context: RunContext) -> None:
        """Launch the engine process and report its exit status."""
        env = build_environment(os.environ, self.env, context.properties)
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                *args,
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as exc:
            raise IOFailure(
                f"Can't start engine '{self.command[0]}': {exc}",
                phase="engine start",
            ) from exc

        log.info("Started engine %s (pid=%d)", self.command[0], process.pid)
        assert process.stdout is not None
        relay = asyncio.create_task(relay_output(process.stdout))
        try:
            returncode = await process.wait()
            await relay
        except asyncio.CancelledError:
            if process.returncode is None:
                log.info("Terminating engine process %d", process.pid)
                process.terminate()
                await process.wait()
            relay.cancel()
            raise

        log.info("Engine process %d exited with status %d", process.pid, returncode)
        context.report_exit(returncode)
