"""
at-utils install command.

Check prerequisites, clone the application at a release, optionally clone
local modules, write the application config and register the super user.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from atcli.commands import github_client
from atcli.commands.register import register_async, super_user_credentials
from atutils.config import Settings, save_app_config
from atutils.plugin.manifest import read_json
from atutils.release import get_releases
from atutils.system import git_ops
from atutils.system.prerequisites import check_prerequisites
from atutils.system.start_commands import get_start_commands

logger = logging.getLogger(__name__)


async def latest_tag(settings: Settings) -> str | None:
    """Tag of the most recent published release."""
    async with github_client(settings) as client:
        releases = await get_releases(client)
    return releases[0].tag_name if releases else None


async def install_async(args: Any, settings: Settings) -> int:
    """Async install implementation."""
    app_root = Path(args.dir).resolve()
    if app_root.exists() and any(app_root.iterdir()):
        print(f"Error: {app_root} is not empty", file=sys.stderr)
        return 1

    await check_prerequisites(settings.prerequisites, ignore=args.ignore_prereqs)

    tag = args.tag or await latest_tag(settings)
    await git_ops.clone_repo(
        app_root,
        org_url=settings.github_org_url,
        repo=settings.github_repo,
        tag=tag,
        clean_install=not args.no_clean,
    )
    if args.local_modules:
        await git_ops.install_local_modules(
            app_root, args.local_modules, org_url=settings.github_org_url
        )

    if args.app_config:
        save_app_config(app_root, read_json(args.app_config), settings.node_env)
        email, password = super_user_credentials(args)
        await register_async(app_root, settings, email, password)
    else:
        logger.info(
            "No --app-config given: write conf/%s.config.js, then run 'at-utils register'",
            settings.node_env,
        )

    commands = get_start_commands(str(app_root))
    print(f"\nInstalled {settings.github_repo}{f'@{tag}' if tag else ''}. To start:\n")
    for shell, command in commands.items():
        print(f"[{shell}]\n{command}\n")
    return 0


def install_command(args: Any, settings: Settings) -> int:
    """
    Execute install command.

    Args:
        args: Parsed command-line arguments
        settings: Resolved at-utils settings

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    return asyncio.run(install_async(args, settings))
