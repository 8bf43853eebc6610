"""Process-wide interception of exit calls made by an in-process engine.

Engines written as command line programs finish by terminating the process.
While a boundary is installed, ``sys.exit`` and ``os._exit`` raise
:class:`EngineExitSignal` instead, and engine threads that die from such a
signal are reported through a callback rather than killing anything.

The hooks being replaced are global, so only one boundary may be installed
at a time in a process.
"""

import logging
import os
import sys
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import TracebackType
from typing import Any, NoReturn, Self

log = logging.getLogger(__name__)

type ExitReporter = Callable[[int], None]

_slot = threading.Lock()


class EngineExitSignal(Exception):
    """Raised in place of a process exit requested by the engine."""

    def __init__(self, code: int) -> None:
        super().__init__(f"Engine requested exit with status {code}")
        self.code = code


class BoundaryBusyError(RuntimeError):
    """Raised when another interception boundary is already installed."""


def exit_code_of(status: object) -> int:
    """Translate a ``sys.exit`` argument into a process exit status."""
    if status is None:
        return 0
    if isinstance(status, int):
        return status
    # sys.exit("message") prints the message and exits with 1
    return 1


def _raise_exit_signal(status: object = None) -> NoReturn:
    raise EngineExitSignal(exit_code_of(status))


@dataclass(frozen=True, kw_only=True)
class ProcessGuard:
    """Global hooks and environment captured before a run."""

    sys_exit: Callable[..., Any]
    os_exit: Callable[[int], Any]
    thread_excepthook: Callable[[threading.ExceptHookArgs], Any]
    environ: Mapping[str, str | None]


class ExitInterceptionBoundary:
    """Single-slot guard converting engine exits into exceptions.

    Args:
        on_exit: Called with the exit status whenever an engine thread dies
            from an intercepted exit. May be called from any thread.
        environ: Environment variables set for the duration of the run and
            reset to their previous values afterwards.

    """

    def __init__(
        self,
        on_exit: ExitReporter | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.on_exit = on_exit
        self.environ = dict(environ or {})
        self._guard: ProcessGuard | None = None

    @property
    def installed(self) -> bool:
        """Whether this boundary currently owns the global hooks."""
        return self._guard is not None

    def install(self) -> ProcessGuard:
        """Replace the global exit hooks and return what was there before.

        Raises:
            BoundaryBusyError: If a boundary is already installed.

        """
        if not _slot.acquire(blocking=False):
            raise BoundaryBusyError("An exit interception boundary is already active")

        guard = ProcessGuard(
            sys_exit=sys.exit,
            os_exit=os._exit,
            thread_excepthook=threading.excepthook,
            environ={key: os.environ.get(key) for key in self.environ},
        )
        sys.exit = _raise_exit_signal
        os._exit = _raise_exit_signal
        threading.excepthook = self._handle_uncaught
        os.environ.update(self.environ)

        self._guard = guard
        log.debug("Exit interception installed")
        return guard

    def restore(self, guard: ProcessGuard) -> None:
        """Reinstall the hooks captured by :meth:`install`."""
        sys.exit = guard.sys_exit
        os._exit = guard.os_exit
        threading.excepthook = guard.thread_excepthook
        for key, value in guard.environ.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value

        if self._guard is not None:
            self._guard = None
            _slot.release()
        log.debug("Exit interception restored")

    def __enter__(self) -> Self:
        self.install()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if self._guard is not None:
            self.restore(self._guard)

    def _handle_uncaught(self, args: threading.ExceptHookArgs) -> None:
        thread_name = args.thread.name if args.thread is not None else "<unknown>"

        if isinstance(args.exc_value, EngineExitSignal):
            code = args.exc_value.code
        elif isinstance(args.exc_value, SystemExit):
            code = exit_code_of(args.exc_value.code)
        else:
            log.error(
                "Error in thread %s",
                thread_name,
                exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
            )
            return

        if code != 0:
            log.warning("Engine thread %s exited with status %d", thread_name, code)
        if self.on_exit is not None:
            self.on_exit(code)
