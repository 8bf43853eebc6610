"""Errors raised by the run task."""

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jmeter_run_task.models.result import TaskResult


class TaskError(Exception):
    """Base class for errors that abort a batch."""


class ConfigurationError(TaskError):
    """Raised when required configuration or plugin metadata is missing."""


class InvalidInputError(TaskError):
    """Raised when a declared test file is missing or not a regular file."""


class RunFailure(TaskError):
    """Raised when the engine signals a nonzero completion for a run."""

    def __init__(self, message: str, code: int) -> None:
        super().__init__(message)
        self.code = code


class RunInterrupted(TaskError):
    """Raised when a batch was interrupted before all runs completed.

    Carries the partial result of the batch: the runs that completed before
    the interruption have already been reported and scanned.
    """

    def __init__(self, message: str, result: "TaskResult") -> None:
        super().__init__(message)
        self.result = result


class IOFailure(TaskError):
    """Raised when reading or writing a file fails during a phase of the task."""

    def __init__(self, message: str, path: Path | None = None, phase: str = "") -> None:
        super().__init__(message)
        self.path = path
        self.phase = phase
