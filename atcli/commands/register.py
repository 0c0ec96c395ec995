"""
at-utils register command.

Create the super user account, starting the application first if its API
is not already reachable.
"""

import asyncio
from pathlib import Path
from typing import Any

from atutils.config import Settings
from atutils.system.registration import (
    AppHandle,
    InternalApiClient,
    read_piped_password,
    register_super_user,
)


async def register_async(
    app_root: Path,
    settings: Settings,
    email: str | None = None,
    password: str | None = None,
) -> None:
    """Register the super user against the application at app_root."""
    async with InternalApiClient.from_app_config(app_root, settings.node_env) as client:
        if await client.ping():
            await register_super_user(client, email, password)
            return
        async with AppHandle(app_root, client):
            await register_super_user(client, email, password)


def super_user_credentials(args: Any) -> tuple[str | None, str | None]:
    password = read_piped_password() if args.pipe_passwd else args.super_password
    return args.super_email, password


def register_command(args: Any, settings: Settings) -> int:
    """
    Execute register command.

    Args:
        args: Parsed command-line arguments
        settings: Resolved at-utils settings

    Returns:
        Exit code (0 for success)
    """
    email, password = super_user_credentials(args)
    asyncio.run(register_async(args.dir, settings, email, password))
    print("Super user registered")
    return 0
