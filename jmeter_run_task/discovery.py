"""Locate the test plans to run."""

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from jmeter_run_task.errors import InvalidInputError

log = logging.getLogger(__name__)

DEFAULT_INCLUDES = ("**/*.jmx",)


def resolve_test_files(
    src_dir: Path,
    test_files: Sequence[Path] | None = None,
    includes: Sequence[str] | None = None,
    excludes: Sequence[str] | None = None,
) -> Sequence[Path]:
    """Return the test plans to run, in run order.

    An explicit list of test files takes precedence over the directory scan,
    and is returned in the declared order.

    Raises:
        InvalidInputError: If a declared test file does not exist or is not a
            regular file

    """
    if test_files is not None:
        return validate_test_files(test_files)
    return scan_source_dir(src_dir, includes, excludes)


def validate_test_files(test_files: Iterable[Path]) -> Sequence[Path]:
    """Check that every declared test file exists and is a regular file."""
    resolved: list[Path] = []
    for test_file in test_files:
        if not test_file.is_file():
            raise InvalidInputError(f"Test file {test_file.resolve()} does not exist")
        resolved.append(test_file.resolve())
    return resolved


def scan_source_dir(
    src_dir: Path,
    includes: Sequence[str] | None = None,
    excludes: Sequence[str] | None = None,
) -> Sequence[Path]:
    """Find files under ``src_dir`` matching the include and exclude patterns.

    Patterns are relative to ``src_dir`` and use Ant conventions: ``**``
    matches any number of directories, and a pattern ending with ``/`` or
    ``/**`` matches everything below that directory.

    Returns:
        Matching files sorted by their path relative to ``src_dir``

    """
    if not src_dir.is_dir():
        log.info("Source directory %s does not exist, no tests to run", src_dir)
        return []

    included = _match(src_dir, includes or DEFAULT_INCLUDES)
    excluded = _match(src_dir, excludes or ())
    return sorted(included - excluded)


def _match(src_dir: Path, patterns: Iterable[str]) -> set[Path]:
    matches: set[Path] = set()
    for pattern in patterns:
        if pattern.endswith("/"):
            pattern += "**/*"
        elif pattern == "**" or pattern.endswith("/**"):
            pattern += "/*"
        matches.update(path for path in src_dir.glob(pattern) if path.is_file())
    return matches
