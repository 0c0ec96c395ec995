"""
at-utils update command.

Move an existing install to another release (the newest candidate unless
--tag is given).
"""

import asyncio
from typing import Any

from atcli.commands import github_client
from atcli.commands.query import installed_version
from atutils.config import Settings
from atutils.release import get_releases
from atutils.system import git_ops


async def update_async(args: Any, settings: Settings) -> int:
    """Async update implementation."""
    current = await installed_version(args.dir)
    tag = args.tag
    if not tag:
        async with github_client(settings) as client:
            releases = await get_releases(
                client,
                current_version=current,
                cwd=args.dir,
                include_branches=args.branches,
                include_prereleases=args.prerelease,
                include_drafts=args.draft,
            )
        if not releases:
            print(f"Already up to date ({current or 'unknown version'})")
            return 0
        tag = releases[0].tag_name

    if tag == current:
        print(f"Already on {tag}")
        return 0

    await git_ops.update_repo(args.dir, tag)
    print(f"Updated {current or 'unknown version'} -> {tag}")
    return 0


def update_command(args: Any, settings: Settings) -> int:
    """
    Execute update command.

    Args:
        args: Parsed command-line arguments
        settings: Resolved at-utils settings

    Returns:
        Exit code (0 for success)
    """
    return asyncio.run(update_async(args, settings))
