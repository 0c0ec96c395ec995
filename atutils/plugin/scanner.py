"""
Tree Scanner.

This module provides recursive file discovery under a directory root.

Key features:
- Suffix matching on absolute paths (e.g. ``conf/config.schema.json``)
- Concurrent fan-out over sibling directories
- Fail-fast on unreadable directories
- Symlink cycle protection
"""

import asyncio
import os
from pathlib import Path

from atutils.errors import AtUtilsError


class DiscoveryIOError(AtUtilsError):
    """Raised when a directory or file cannot be read during discovery."""

    def __init__(self, path: str | Path, reason: str = ""):
        self.path = str(path)
        message = f"Failed to read {self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


def _list_dir(directory: str) -> list[tuple[str, bool, bool]]:
    """Return (path, is_dir, is_file) for each entry of a directory."""
    with os.scandir(directory) as it:
        return [
            (os.path.join(directory, entry.name), entry.is_dir(), entry.is_file())
            for entry in it
        ]


async def _scan(directory: str, suffix: str, visited: frozenset[str]) -> list[str]:
    real = os.path.realpath(directory)
    if real in visited:
        return []
    visited = visited | {real}

    try:
        entries = await asyncio.to_thread(_list_dir, directory)
    except OSError as e:
        raise DiscoveryIOError(directory, e.strerror or str(e)) from e

    matches = [path for path, _, is_file in entries if is_file and path.endswith(suffix)]
    subdirs = [path for path, is_dir, _ in entries if is_dir]

    nested = await asyncio.gather(*(_scan(d, suffix, visited) for d in subdirs))
    for found in nested:
        matches.extend(found)
    return matches


async def scan_tree(root: str | Path, suffix: str) -> list[str]:
    """
    Find every file under root whose path ends with suffix.

    Args:
        root: Directory to walk
        suffix: File name or trailing path fragment to match

    Returns:
        Absolute paths of matching files, in no particular order

    Raises:
        DiscoveryIOError: If root or any directory below it cannot be listed
    """
    root = os.path.abspath(root)
    return await _scan(root, suffix, frozenset())
