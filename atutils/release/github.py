"""
GitHub API Client.

This module provides a small async client for the repository endpoints
used by release selection (releases, branches, commits).
"""

import logging
from typing import Any

import httpx

from atutils import GITHUB_ORG, GITHUB_REPO
from atutils.errors import AtUtilsError

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


class RemoteRequestError(AtUtilsError):
    """Raised when the remote host fails or returns a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, url: str = ""):
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class GitHubClient:
    """
    Async client scoped to one GitHub repository.

    Usage:
        async with GitHubClient(user="me", token="...") as client:
            releases = await client.request("releases?per_page=10")
    """

    def __init__(
        self,
        org: str = GITHUB_ORG,
        repo: str = GITHUB_REPO,
        user: str | None = None,
        token: str | None = None,
        base_url: str = GITHUB_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize GitHubClient.

        Args:
            org: Repository owner
            repo: Repository name
            user: GitHub user for basic auth (optional)
            token: GitHub token for basic auth (optional)
            base_url: API root
            timeout: Request timeout in seconds
            transport: Custom httpx transport (used in tests)
        """
        self.org = org
        self.repo = repo
        auth = httpx.BasicAuth(user, token) if user and token else None
        self.client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/repos/{org}/{repo}/",
            auth=auth,
            timeout=timeout,
            headers={"Accept": "application/vnd.github+json"},
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    async def request(self, endpoint: str) -> Any:
        """
        GET a repository endpoint.

        Args:
            endpoint: Path relative to the repository root, or an absolute URL

        Returns:
            Parsed JSON body, or None for 204 responses

        Raises:
            RemoteRequestError: On transport failure or a status above 299
        """
        logger.debug("GET %s", endpoint)
        try:
            response = await self.client.get(endpoint)
        except httpx.HTTPError as e:
            raise RemoteRequestError(f"Request to {endpoint} failed: {e}", url=endpoint) from e

        if response.status_code > 299:
            raise RemoteRequestError(
                response.reason_phrase or f"HTTP {response.status_code}",
                status_code=response.status_code,
                url=str(response.url),
            )
        if response.status_code == 204:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteRequestError(
                f"Invalid JSON from {response.url}", response.status_code, str(response.url)
            ) from e
