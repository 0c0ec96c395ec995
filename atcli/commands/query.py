"""
at-utils query commands (releases, deps, schemas).

Each prints its result as indented JSON on stdout.
"""

import asyncio
import json
from pathlib import Path
from typing import Any

from atcli.commands import github_client
from atutils.config import Settings
from atutils.plugin import collect_schemas, get_app_dependencies
from atutils.plugin.dependencies import MODULES_DIRNAME
from atutils.plugin.manifest import load_package
from atutils.plugin.scanner import DiscoveryIOError
from atutils.release import get_releases


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


async def installed_version(app_root: Path) -> str | None:
    """Version from the application's package.json, or None if not installed."""
    try:
        return (await load_package(app_root)).get("version")
    except DiscoveryIOError:
        return None


async def releases_async(args: Any, settings: Settings) -> int:
    current = args.current or await installed_version(args.dir)
    async with github_client(settings) as client:
        releases = await get_releases(
            client,
            current_version=current,
            cwd=args.dir,
            include_branches=args.branches,
            include_prereleases=args.prerelease,
            include_drafts=args.draft,
        )
    print_json([r.to_dict() for r in releases])
    return 0


async def deps_async(args: Any, settings: Settings) -> int:
    deps = await get_app_dependencies(args.dir)
    print_json(deps.to_dict())
    return 0


async def schemas_async(args: Any, settings: Settings) -> int:
    schemas = await collect_schemas(Path(args.dir) / MODULES_DIRNAME)
    print_json(schemas.to_dict())
    return 0


def query_command(args: Any, settings: Settings) -> int:
    """
    Execute one of the read-only query commands.

    Args:
        args: Parsed command-line arguments
        settings: Resolved at-utils settings

    Returns:
        Exit code (0 for success)
    """
    handlers = {
        "releases": releases_async,
        "deps": deps_async,
        "schemas": schemas_async,
    }
    return asyncio.run(handlers[args.command](args, settings))
