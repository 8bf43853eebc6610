"""Models describing a single engine run and its outcome."""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import Field

from jmeter_run_task.models.base import Model


class RunRequest(Model):
    """Everything needed to invoke the engine for one test file."""

    test_file: Path = Field(..., description="Test plan to execute")
    result_file: Path = Field(..., description="Result file written by the engine")
    working_dir: Path = Field(..., description="Engine home/working directory")
    property_file: Path = Field(..., description="Engine property file")
    extra_properties: Sequence[str] = Field(
        default_factory=tuple,
        description="User properties in key=value form, passed in order",
    )
    remote: bool = Field(default=False, description="Start remote servers")


class RunState(Enum):
    """States a run goes through while supervised."""

    IDLE = "idle"
    ARMED = "armed"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED_NON_ZERO = "failed_non_zero"
    INTERRUPTED = "interrupted"


@dataclass(frozen=True, kw_only=True)
class Completed:
    """The engine finished normally and produced a result file."""

    result_file: Path


@dataclass(frozen=True, kw_only=True)
class CompletedWithNonZeroCode:
    """The engine finished with a nonzero exit code or a setup error."""

    code: int
    message: str | None = None


@dataclass(frozen=True, kw_only=True)
class Interrupted:
    """The wait for completion was interrupted; neither success nor failure."""


type RunOutcome = Completed | CompletedWithNonZeroCode | Interrupted
