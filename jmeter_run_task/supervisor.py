"""Supervise a single engine run from launch to outcome."""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jmeter_run_task.arguments import build_arguments
from jmeter_run_task.engines.base import LoadEngine, RunContext
from jmeter_run_task.errors import TaskError
from jmeter_run_task.models.run import (
    Completed,
    CompletedWithNonZeroCode,
    Interrupted,
    RunOutcome,
    RunRequest,
    RunState,
)
from jmeter_run_task.watcher import DEFAULT_POLL_INTERVAL, CompletionWatcher

log = logging.getLogger(__name__)

SETUP_FAILURE_CODE = 1
ENGINE_CRASH_CODE = 1

TERMINAL_STATES: Mapping[type[Any], RunState] = {
    Completed: RunState.SUCCEEDED,
    CompletedWithNonZeroCode: RunState.FAILED_NON_ZERO,
    Interrupted: RunState.INTERRUPTED,
}


@dataclass(kw_only=True)
class RunSupervisor:
    """Owns one engine run at a time, end to end.

    The engine is started together with a watcher on its log file, and the
    first of these signals decides the outcome:

    * an exit status reported by the engine (0 is success),
    * a sentinel line in the log,
    * an interruption of the wait.

    The engine's isolation (for in-process engines, the exit interception
    boundary) is always released before the outcome is returned.
    """

    engine: LoadEngine
    log_file: Path
    properties: Mapping[str, str] = field(default_factory=dict)
    poll_interval: float = DEFAULT_POLL_INTERVAL
    interrupt_event: asyncio.Event = field(default_factory=asyncio.Event)
    state: RunState = field(default=RunState.IDLE, init=False)

    def interrupt(self) -> None:
        """Stop waiting for the current run and any later one."""
        self.interrupt_event.set()

    async def run(self, request: RunRequest) -> RunOutcome:
        """Execute the engine for one request and return how it ended.

        Raises:
            RuntimeError: If a run is already in progress on this supervisor
            TaskError: If the engine can't be started or its log can't be read

        """
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"Run already in progress (state={self.state.value})")

        args = build_arguments(request)
        log.debug(
            "JMeter is called with the following command line arguments: %s", args
        )
        watcher = CompletionWatcher(self.log_file, self.poll_interval)
        context = RunContext.create(self.properties)
        self._transition(RunState.ARMED)

        try:
            with self.engine.isolate(context):
                self._transition(RunState.RUNNING)
                outcome = await self._supervise(request, args, watcher, context)
                self._transition(TERMINAL_STATES[type(outcome)])
        finally:
            self._transition(RunState.IDLE)

        return outcome

    async def _supervise(
        self,
        request: RunRequest,
        args: Sequence[str],
        watcher: CompletionWatcher,
        context: RunContext,
    ) -> RunOutcome:
        engine_task = asyncio.create_task(
            self.engine.start(args, context), name=f"engine:{request.test_file.name}"
        )
        watcher_task = asyncio.create_task(
            watcher.wait(self.interrupt_event),
            name=f"watcher:{request.test_file.name}",
        )
        pending: set[asyncio.Future[Any]] = {engine_task, watcher_task, context.exited}

        try:
            while True:
                done, pending = await asyncio.wait(
                    pending, return_when=asyncio.FIRST_COMPLETED
                )

                if context.exited in done:
                    return self._from_exit_code(request, context.exited.result())

                if watcher_task in done:
                    return self._from_log(request, watcher_task)

                # A start call that returns only means the engine is running
                if engine_task in done and (crash := self._engine_crash(engine_task)):
                    return crash
        finally:
            for task in (engine_task, watcher_task):
                task.cancel()
            await asyncio.gather(engine_task, watcher_task, return_exceptions=True)

    def _engine_crash(self, engine_task: asyncio.Task[None]) -> RunOutcome | None:
        if engine_task.cancelled() or (exc := engine_task.exception()) is None:
            return None

        if isinstance(exc, TaskError):
            raise exc

        log.error("Engine failed to start: %s", exc, exc_info=exc)
        return CompletedWithNonZeroCode(code=ENGINE_CRASH_CODE, message=str(exc))

    def _from_exit_code(self, request: RunRequest, code: int) -> RunOutcome:
        if code == 0:
            log.info("Engine exited normally for %s", request.test_file.name)
            return Completed(result_file=request.result_file)

        log.error("Engine exited with status %d for %s", code, request.test_file.name)
        return CompletedWithNonZeroCode(
            code=code, message=f"Engine exited with status {code}"
        )

    def _from_log(
        self, request: RunRequest, watcher_task: asyncio.Task[Any]
    ) -> RunOutcome:
        if watcher_task.cancelled():
            log.warning("Wait for %s was cancelled", request.test_file.name)
            return Interrupted()

        tail_state = watcher_task.result()
        if not tail_state.ended:
            log.warning("Run of %s was interrupted", request.test_file.name)
            return Interrupted()

        if tail_state.success:
            log.info("Test has ended for %s", request.test_file.name)
            return Completed(result_file=request.result_file)

        log.error(
            "Engine could not start %s: %s",
            request.test_file.name,
            tail_state.matched_line,
        )
        return CompletedWithNonZeroCode(
            code=SETUP_FAILURE_CODE, message=tail_state.matched_line
        )

    def _transition(self, new_state: RunState) -> None:
        log.debug("Run state %s -> %s", self.state.value, new_state.value)
        self.state = new_state
