"""Engine running a Python main function inside the task's own process."""

import asyncio
import logging
import pkgutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from jmeter_run_task.boundary import (
    EngineExitSignal,
    ExitInterceptionBoundary,
    exit_code_of,
)
from jmeter_run_task.engines.base import LoadEngine, RunContext
from jmeter_run_task.engines.in_process.config import InProcessConfig
from jmeter_run_task.errors import ConfigurationError

log = logging.getLogger(__name__)

type EngineMain = Callable[[list[str]], Any]


@dataclass(frozen=True, kw_only=True)
class InProcessEngine(LoadEngine):
    """Runs the engine main function on a worker thread.

    The main function behaves like a command line program: it either
    returns after spawning its own worker threads, or ends the run by
    calling ``sys.exit``. Exits are intercepted by the boundary returned
    from :meth:`isolate` and reported to the run context.
    """

    name: str
    main: EngineMain = field(repr=False)

    @classmethod
    def from_config(cls, config: InProcessConfig) -> "InProcessEngine":
        """Resolve the configured main function."""
        try:
            main = pkgutil.resolve_name(config.entry)
        except (ImportError, AttributeError, ValueError) as exc:
            raise ConfigurationError(
                f"Can't load engine entry point '{config.entry}'"
            ) from exc

        if not callable(main):
            raise ConfigurationError(
                f"Engine entry point '{config.entry}' is not callable"
            )

        return cls(name=config.entry, main=main)

    def isolate(self, context: RunContext) -> ExitInterceptionBoundary:
        """Intercept process exits for the duration of the run."""
        return ExitInterceptionBoundary(
            on_exit=context.report_exit, environ=context.properties
        )

    async def start(self, args: Sequence[str], context: RunContext) -> None:
        """Call the main function and report an exit it requests."""
        log.info("Starting engine %s in process", self.name)
        try:
            await asyncio.to_thread(self.main, list(args))
        except EngineExitSignal as signal:
            context.report_exit(signal.code)
        except SystemExit as exc:
            # raised directly instead of through sys.exit
            context.report_exit(exit_code_of(exc.code))
        else:
            log.debug("Engine %s returned, waiting for its threads", self.name)
