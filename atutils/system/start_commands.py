"""Shell snippets telling the user how to start the installed application."""

import re
import sys


def _command(directory: str) -> str:
    return f"cd {directory}\nnpm start"


def get_start_commands(cwd: str, platform: str = sys.platform) -> dict[str, str]:
    """
    Build start instructions for the shells available on platform.

    On Windows a Git Bash path is also produced, e.g. ``C:\\aat`` -> ``/c/aat``.
    """
    commands = {"bash": _command(cwd)}
    if platform == "win32":
        commands["windows"] = _command(cwd)
        drive = re.match(r"^[A-Za-z]", cwd)
        if drive:
            posix_path = cwd.replace("\\", "/")[3:]
            commands["bash"] = _command(f"/{drive.group(0).lower()}/{posix_path}")
    return commands
