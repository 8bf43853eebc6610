"""Detect the end of an engine run by tailing its log file."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from jmeter_run_task.errors import IOFailure

log = logging.getLogger(__name__)

SUCCESS_SENTINEL = "Test has ended"
SETUP_ERROR_SENTINEL = "Could not open"

DEFAULT_POLL_INTERVAL = 1.0


@dataclass(kw_only=True)
class LogTailState:
    """Read position in the log and what has been seen so far."""

    offset: int = 0
    ended: bool = False
    success: bool = False
    matched_line: str | None = None
    polls: int = 0


class CompletionWatcher:
    """Poll an append-only log for the lines that mark the end of a run.

    The watcher is armed at construction: only lines appended after that
    point are considered, so sentinels left in the log by earlier runs are
    ignored.
    """

    def __init__(
        self, log_file: Path, poll_interval: float = DEFAULT_POLL_INTERVAL
    ) -> None:
        self.log_file = log_file
        self.poll_interval = poll_interval
        self.state = LogTailState(offset=self._current_size())

    def _current_size(self) -> int:
        try:
            return self.log_file.stat().st_size
        except FileNotFoundError:
            return 0
        except OSError as exc:
            raise IOFailure(
                f"Can't read log file {self.log_file}",
                path=self.log_file,
                phase="log tailing",
            ) from exc

    def poll(self) -> bool:
        """Read newly appended complete lines.

        Returns:
            True once a sentinel line has been seen, False otherwise

        """
        if self.state.ended:
            return True

        self.state.polls += 1
        if self._current_size() < self.state.offset:
            log.debug("Log file %s was truncated, reading from start", self.log_file)
            self.state.offset = 0

        try:
            with self.log_file.open("rb") as fp:
                fp.seek(self.state.offset)
                for raw in fp:
                    if not raw.endswith(b"\n"):
                        # still being written
                        break
                    self.state.offset += len(raw)
                    if self._match(raw.decode("utf-8", errors="replace").rstrip()):
                        return True
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise IOFailure(
                f"Can't read log file {self.log_file}",
                path=self.log_file,
                phase="log tailing",
            ) from exc

        return False

    def _match(self, line: str) -> bool:
        if SUCCESS_SENTINEL in line:
            success = True
        elif SETUP_ERROR_SENTINEL in line:
            success = False
        else:
            return False

        self.state.ended = True
        self.state.success = success
        self.state.matched_line = line
        log.debug("End of test detected in %s: %s", self.log_file, line)
        return True

    async def wait(self, interrupt: asyncio.Event | None = None) -> LogTailState:
        """Poll until a sentinel line appears or ``interrupt`` is set.

        There is no timeout: a run that never logs a sentinel is waited on
        until it is interrupted. An interrupted wait returns a state with
        ``ended`` set to False.
        """
        interrupt = interrupt or asyncio.Event()

        while not self.poll():
            try:
                await asyncio.wait_for(interrupt.wait(), timeout=self.poll_interval)
            except TimeoutError:
                continue

            log.info(
                "Stopped waiting for end of test after %d poll(s)", self.state.polls
            )
            break

        return self.state
