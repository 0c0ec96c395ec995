"""
Release selection - Upgrade candidates from the remote repository.

This package handles:
- Semantic version parsing and range matching
- GitHub API access
- Filtering and ordering of releases and branches
"""

from atutils.release.github import GitHubClient, RemoteRequestError
from atutils.release.selector import ReleaseCandidate, get_releases

__all__ = ["GitHubClient", "ReleaseCandidate", "RemoteRequestError", "get_releases"]
