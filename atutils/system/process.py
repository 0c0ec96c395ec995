"""
Process Execution.

This module runs external commands (git, npm, prerequisite tools) and
captures their output.
"""

import asyncio
import logging
from pathlib import Path

from atutils.errors import AtUtilsError

logger = logging.getLogger(__name__)


class ProcessError(AtUtilsError):
    """Raised when a command cannot be started or exits non-zero."""

    def __init__(self, cmd: list[str], returncode: int | None, stderr: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        if returncode is None:
            message = f"Failed to start {cmd[0]}: {stderr}"
        else:
            message = f"'{' '.join(cmd)}' exited with code {returncode}"
            if stderr.strip():
                message = f"{message}: {stderr.strip()}"
        super().__init__(message)


async def run(cmd: list[str], cwd: str | Path | None = None) -> str:
    """
    Run a command and return its stdout.

    Args:
        cmd: Command and arguments
        cwd: Working directory (defaults to the current directory)

    Returns:
        Decoded stdout

    Raises:
        ProcessError: If the executable is missing or the command fails
    """
    logger.debug("Running %s in %s", cmd, cwd or ".")
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, NotADirectoryError) as e:
        raise ProcessError(cmd, None, str(e)) from e

    stdout, stderr = await process.communicate()
    if process.returncode != 0:
        raise ProcessError(cmd, process.returncode, stderr.decode(errors="replace"))
    return stdout.decode(errors="replace")
