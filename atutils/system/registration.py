"""
Super User Registration.

This module talks to a running application's internal API to create the
initial super user account.

Key features:
- InternalApiClient built from the application's config file
- AppHandle: a caller-owned, locally started application process
- Interactive registration loop that re-prompts on validation errors
"""

import asyncio
import getpass
import logging
import os
import sys
from pathlib import Path
from typing import Any, Protocol, TextIO

import httpx

from atutils.config.app_config import load_app_config
from atutils.errors import AtUtilsError
from atutils.system.process import ProcessError

logger = logging.getLogger(__name__)

SERVER_MODULE = "adapt-authoring-server"
REGISTER_SUPER_ENDPOINT = "auth/local/registersuper"


class ApiError(AtUtilsError):
    """Raised when the internal API returns a non-success status."""

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class ValidationError(ApiError):
    """Raised when the API rejects submitted data (code VALIDATION_FAILED)."""

    def __init__(self, message: str, errors: Any = None, status_code: int | None = None):
        self.errors = errors
        super().__init__(message, code="VALIDATION_FAILED", status_code=status_code)


class InternalApiClient:
    """Async client for a running application's ``/api/`` routes."""

    def __init__(
        self,
        host: str,
        port: int,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = f"http://{host}:{port}/api/"
        self.client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    @classmethod
    def from_app_config(
        cls, app_root: str | Path, env: str, **kwargs: Any
    ) -> "InternalApiClient":
        """
        Build a client from the server section of conf/<env>.config.js.

        Raises:
            ConfigError: If the config file is missing or malformed
            ApiError: If the server section has no host or port
        """
        server = load_app_config(app_root, env).get(SERVER_MODULE, {})
        if "host" not in server or "port" not in server:
            raise ApiError(f"Config has no {SERVER_MODULE} host/port")
        return cls(server["host"], server["port"], **kwargs)

    async def __aenter__(self) -> "InternalApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    async def request(
        self, endpoint: str, data: dict[str, Any] | None = None, method: str = "POST"
    ) -> Any:
        """
        Send a request to the internal API.

        Returns:
            Parsed JSON body, or None for 204 or empty responses

        Raises:
            ValidationError: If the API reports VALIDATION_FAILED
            ApiError: For any other status above 299
            httpx.ConnectError: If the server is not running
        """
        response = await self.client.request(method, endpoint, json=data)
        if response.status_code == 204:
            return None
        if response.status_code > 299:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("message") or response.reason_phrase
            if body.get("code") == "VALIDATION_FAILED":
                errors = (body.get("data") or {}).get("errors")
                raise ValidationError(message, errors, response.status_code)
            raise ApiError(message, body.get("code"), response.status_code)
        return response.json() if response.content else None

    async def ping(self) -> bool:
        """Check whether the API is accepting connections."""
        try:
            await self.client.get("")
        except httpx.TransportError:
            return False
        return True


class AppHandle:
    """
    A locally started application, owned by the caller.

    Usage:
        async with AppHandle(cwd, client) as app:
            await register_super_user(client)
    """

    def __init__(
        self,
        cwd: str | Path,
        client: InternalApiClient,
        command: list[str] | None = None,
        startup_timeout: float = 120.0,
        poll_interval: float = 1.0,
    ):
        self.cwd = cwd
        self.client = client
        self.command = command or ["npm", "start"]
        self.startup_timeout = startup_timeout
        self.poll_interval = poll_interval
        self._process: asyncio.subprocess.Process | None = None

    async def start(self) -> None:
        """
        Start the application and wait until its API answers.

        Raises:
            ProcessError: If the start command cannot be launched
            AtUtilsError: If the process exits or the API does not come up in time
        """
        logger.info("Starting application in %s", self.cwd)
        env = {**os.environ, "ADAPT_AUTHORING_LOGGER__mute": "true"}
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                cwd=self.cwd,
                env=env,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except (FileNotFoundError, NotADirectoryError) as e:
            raise ProcessError(self.command, None, str(e)) from e
        try:
            await asyncio.wait_for(self._wait_ready(), self.startup_timeout)
        except (asyncio.TimeoutError, AtUtilsError) as e:
            await self.stop()
            if isinstance(e, AtUtilsError):
                raise
            raise AtUtilsError(
                f"Application did not start within {self.startup_timeout}s"
            ) from e

    async def _wait_ready(self) -> None:
        while not await self.client.ping():
            if self._process.returncode is not None:
                raise AtUtilsError(
                    f"Application exited with code {self._process.returncode}"
                )
            await asyncio.sleep(self.poll_interval)

    async def stop(self) -> None:
        if self._process is None:
            return
        if self._process.returncode is None:
            self._process.terminate()
            await self._process.wait()
        self._process = None

    async def __aenter__(self) -> "AppHandle":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()


class Prompter(Protocol):
    def email(self) -> str: ...

    def password(self, message: str) -> str: ...


class ConsolePrompter:
    """Prompt on the terminal."""

    def email(self) -> str:
        return input(
            "Enter an email address to be used as a login for the Super User account: "
        ).strip()

    def password(self, message: str) -> str:
        return getpass.getpass(f"{message}: ")


def read_piped_password(stream: TextIO = sys.stdin) -> str:
    """Read a password piped on stdin (first line)."""
    return stream.readline().rstrip("\r\n")


async def register_super_user(
    client: InternalApiClient,
    email: str | None = None,
    password: str | None = None,
    prompter: Prompter | None = None,
) -> None:
    """
    Register the super user, prompting for anything not supplied.

    A validation failure is reported and both values are asked for again.

    Args:
        client: API client for the running application
        email: Super user email (prompted if None)
        password: Super user password (prompted if None)
        prompter: Source of interactive answers

    Raises:
        ApiError: For any failure other than validation
    """
    prompter = prompter or ConsolePrompter()
    while True:
        if not email:
            email = prompter.email()
        if not password:
            first = prompter.password("Enter a password for the Super User account")
            second = prompter.password("Please type the password again to confirm")
            if first != second:
                print("Passwords don't match. Please try again")
                continue
            password = first
        try:
            await client.request(REGISTER_SUPER_ENDPOINT, {"email": email, "password": password})
        except ValidationError as e:
            print(f"\nERROR: Failed to register super user, {e.errors or e}\n")
            email = password = None
            continue
        logger.info("Registered super user %s", email)
        return
