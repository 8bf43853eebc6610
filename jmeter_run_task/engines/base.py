"""Abstract base class for load-testing engines."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from contextlib import AbstractContextManager, nullcontext, suppress
from dataclasses import dataclass, field
from typing import Any, Self


@dataclass(frozen=True, kw_only=True)
class RunContext:
    """Channel between a running engine and its supervisor.

    The engine reports its exit status through :meth:`report_exit`, from
    whichever thread observes it. The first report wins.
    """

    properties: Mapping[str, str] = field(default_factory=dict)
    exited: asyncio.Future[int]
    loop: asyncio.AbstractEventLoop = field(repr=False)

    @classmethod
    def create(cls, properties: Mapping[str, str] | None = None) -> Self:
        """Create a context bound to the running event loop."""
        loop = asyncio.get_running_loop()
        return cls(
            properties=dict(properties or {}),
            exited=loop.create_future(),
            loop=loop,
        )

    def report_exit(self, code: int) -> None:
        """Record the exit status of the engine. Safe to call from any thread."""
        if self.loop.is_closed():
            return
        # The loop can still close between the check and the call.
        with suppress(RuntimeError):
            self.loop.call_soon_threadsafe(self._resolve, code)

    def _resolve(self, code: int) -> None:
        if not self.exited.done():
            self.exited.set_result(code)


@dataclass(frozen=True, kw_only=True)
class LoadEngine(ABC):
    """Abstract base for engines that execute a test plan.

    The engine takes the command line built for a run and reports how it
    terminated through the run context. It never signals completion by
    returning: a start call that returns only means the engine is now
    running on its own threads.
    """

    @abstractmethod
    async def start(self, args: Sequence[str], context: RunContext) -> None:
        """Start the engine for one run.

        Args:
            args: Engine command line, without the program name
            context: Run context to report the exit status to

        """

    def isolate(self, context: RunContext) -> AbstractContextManager[Any]:
        """Return the context manager isolating a run from the host process.

        Engines that run in their own process need no isolation.
        """
        return nullcontext()
