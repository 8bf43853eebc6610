"""Build the engine command line for a single test file."""

from collections.abc import Sequence
from datetime import date
from pathlib import Path

from jmeter_run_task.errors import IOFailure
from jmeter_run_task.models.run import RunRequest

DEFAULT_PROPERTY_FILE_NAME = "jmeter.properties"
RESULT_DATE_FORMAT = "%Y%m%d"


def result_file_for(test_file: Path, report_dir: Path, today: date) -> Path:
    """Return the result file path for a test file.

    The name is the full test file name followed by the run date, for
    example ``login.jmx-20240131.xml``.
    """
    return report_dir / f"{test_file.name}-{today.strftime(RESULT_DATE_FORMAT)}.xml"


def prepare_run_request(
    test_file: Path,
    *,
    src_dir: Path,
    report_dir: Path,
    working_dir: Path,
    user_properties: Sequence[str] = (),
    remote: bool = False,
    today: date,
) -> RunRequest:
    """Create the run request for a test file.

    Any result file left over from an earlier run on the same day is
    deleted so that a stale artifact is never collected.
    """
    result_file = result_file_for(test_file, report_dir, today)
    try:
        result_file.unlink(missing_ok=True)
    except OSError as exc:
        raise IOFailure(
            f"Can't delete previous result file {result_file}",
            path=result_file,
            phase="setup",
        ) from exc

    return RunRequest(
        test_file=test_file.resolve(),
        result_file=result_file.resolve(),
        working_dir=working_dir.resolve(),
        property_file=(src_dir / DEFAULT_PROPERTY_FILE_NAME).resolve(),
        extra_properties=tuple(user_properties),
        remote=remote,
    )


def build_arguments(request: RunRequest) -> list[str]:
    """Return the engine arguments for a run request, in engine order."""
    args = [
        "-n",
        "-t",
        str(request.test_file),
        "-l",
        str(request.result_file),
        "-d",
        str(request.working_dir),
        "-p",
        str(request.property_file),
    ]
    args.extend(f"-J{prop}" for prop in request.extra_properties)

    if request.remote:
        args.append("-r")

    return args
