"""
Host Prerequisite Checks.

This module verifies that the tools the installer shells out to are
present and recent enough.
"""

import asyncio
import logging
import re

from atutils.errors import AtUtilsError
from atutils.release import versioning
from atutils.system.process import ProcessError, run

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"(\d+\.\d+\.\d+)\D")


class PrerequisiteError(AtUtilsError):
    """Raised when one or more prerequisites are missing or outdated."""

    def __init__(self, failures: list[str]):
        self.failures = list(failures)
        super().__init__(format_failures(self.failures))


def format_failures(failures: list[str]) -> str:
    lines = "".join(f"- {f}\n" for f in failures)
    return f"Prerequisite check failed:\n{lines}"


def extract_version(output: str) -> str | None:
    """Pull the first X.Y.Z version out of a tool's ``--version`` output."""
    match = _VERSION_RE.search(output)
    return match.group(1) if match else None


async def _check(name: str, required: str) -> str | None:
    try:
        output = await run([name, "--version"])
    except ProcessError:
        return f"Missing prerequisite '{name}'"

    installed = extract_version(output)
    if not versioning.satisfies(installed, required):
        return (
            f"Installed version of {name} ({installed}) "
            f"doesn't satisfy required version ({required})"
        )
    return None


async def check_prerequisites(prereqs: dict[str, str], ignore: bool = False) -> list[str]:
    """
    Check every prerequisite concurrently.

    Args:
        prereqs: Tool name -> required version range
        ignore: Log failures as warnings instead of raising

    Returns:
        Failure messages (empty when every check passed)

    Raises:
        PrerequisiteError: If any check fails and ignore is False
    """
    results = await asyncio.gather(*(_check(n, r) for n, r in prereqs.items()))
    failures = [r for r in results if r is not None]
    if not failures:
        return []
    if not ignore:
        raise PrerequisiteError(failures)

    logger.warning(format_failures(failures))
    logger.warning("--ignore-prereqs flag passed so process will continue")
    logger.warning(
        "If issues are encountered please make sure the correct prerequisites are installed"
    )
    return failures
