"""Subcommand implementations for the at-utils CLI."""

from atutils.config import Settings
from atutils.release import GitHubClient


def github_client(settings: Settings) -> GitHubClient:
    """Create a GitHub client for the configured application repository."""
    return GitHubClient(
        org=settings.github_org,
        repo=settings.github_repo,
        user=settings.github_user,
        token=settings.github_token,
        base_url=settings.github_api_url,
    )
