"""
Release Selection.

This module builds the list of versions an installation can move to.

A candidate is kept when no current version is known, when it is newer by
semantic version, or when it was published after the current commit. The
last clause means an older version published later (e.g. a patch on a
maintenance line) is still offered.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from atutils.release import versioning
from atutils.release.github import GitHubClient
from atutils.system import git_ops

logger = logging.getLogger(__name__)

RELEASES_PER_PAGE = 10

# Unpublished drafts have no date and sort last
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_date(value: str | None) -> datetime:
    """Parse an ISO 8601 timestamp as returned by the GitHub API."""
    if not value:
        return EPOCH
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class ReleaseCandidate:
    """
    A tagged release or branch head eligible for upgrade.

    Attributes:
        name: Display name, annotated for drafts, prereleases and branches
        tag_name: Tag to check out (the branch name for branches)
        date: Publish date, or head commit date for branches
        draft: Whether the release is a draft
        prerelease: Whether the release is a prerelease
        branch: Whether the candidate is a branch head
    """

    name: str
    tag_name: str
    date: datetime
    draft: bool = False
    prerelease: bool = False
    branch: bool = False

    @classmethod
    def from_release(cls, data: dict[str, Any]) -> "ReleaseCandidate":
        draft = bool(data.get("draft"))
        prerelease = bool(data.get("prerelease"))
        name = data.get("name") or data["tag_name"]
        if draft:
            name = f"{name} (draft)"
        elif prerelease:
            name = f"{name} (prerelease)"
        return cls(
            name=name,
            tag_name=data["tag_name"],
            date=parse_date(data.get("published_at") or data.get("created_at")),
            draft=draft,
            prerelease=prerelease,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "tag_name": self.tag_name,
            "date": self.date.isoformat(),
            "draft": self.draft,
            "prerelease": self.prerelease,
            "branch": self.branch,
        }


async def _current_version_date(cwd: str | Path | None) -> datetime | None:
    try:
        return await git_ops.last_commit_date(cwd)
    except Exception as e:
        logger.debug("No local commit date for %s: %s", cwd, e)
        return None


async def _branch_candidate(client: GitHubClient, branch: dict[str, Any]) -> ReleaseCandidate:
    data = await client.request(branch["commit"]["url"])
    return ReleaseCandidate(
        name=f"{branch['name']} (branch)",
        tag_name=branch["name"],
        date=parse_date(data["commit"]["author"]["date"]),
        branch=True,
    )


async def fetch_candidates(
    client: GitHubClient, include_branches: bool = False
) -> list[ReleaseCandidate]:
    """
    Fetch the most recent releases and, optionally, every branch head.

    Raises:
        RemoteRequestError: If any request fails
    """
    releases = await client.request(f"releases?per_page={RELEASES_PER_PAGE}")
    candidates = [ReleaseCandidate.from_release(r) for r in releases or []]

    if include_branches:
        branches = await client.request("branches") or []
        candidates.extend(
            await asyncio.gather(*(_branch_candidate(client, b) for b in branches))
        )
    return candidates


def is_newer(
    candidate: ReleaseCandidate,
    current_version: str | None,
    current_version_date: datetime | None,
) -> bool:
    if not current_version:
        return True
    if (
        versioning.is_valid(current_version)
        and versioning.is_valid(candidate.tag_name)
        and versioning.gt(candidate.tag_name, current_version)
    ):
        return True
    return current_version_date is not None and candidate.date > current_version_date


def select_releases(
    candidates: list[ReleaseCandidate],
    current_version: str | None = None,
    current_version_date: datetime | None = None,
    include_prereleases: bool = False,
    include_drafts: bool = False,
) -> list[ReleaseCandidate]:
    """
    Filter and order candidates, newest first.

    Args:
        candidates: Fetched candidates, in fetch order
        current_version: Installed version, if known
        current_version_date: Date of the installed commit, if known
        include_prereleases: Keep prereleases
        include_drafts: Keep drafts

    Returns:
        Surviving candidates sorted by date, descending. Ties keep fetch order.
    """
    selected = []
    for candidate in candidates:
        if candidate.tag_name == current_version:
            continue
        if candidate.prerelease and not include_prereleases:
            continue
        if candidate.draft and not include_drafts:
            continue
        if is_newer(candidate, current_version, current_version_date):
            selected.append(candidate)
    return sorted(selected, key=lambda c: c.date, reverse=True)


async def get_releases(
    client: GitHubClient,
    current_version: str | None = None,
    cwd: str | Path | None = None,
    include_branches: bool = False,
    include_prereleases: bool = False,
    include_drafts: bool = False,
) -> list[ReleaseCandidate]:
    """
    List the releases (and optionally branches) an installation can move to.

    Args:
        client: GitHub client for the application repository
        current_version: Installed version, if any
        cwd: Application checkout used to date the installed commit
        include_branches: Also offer branch heads
        include_prereleases: Also offer prereleases
        include_drafts: Also offer drafts

    Returns:
        Ordered list of ReleaseCandidate, newest first

    Raises:
        RemoteRequestError: If the remote host fails
    """
    current_version_date = await _current_version_date(cwd)
    candidates = await fetch_candidates(client, include_branches)
    return select_releases(
        candidates,
        current_version=current_version,
        current_version_date=current_version_date,
        include_prereleases=include_prereleases,
        include_drafts=include_drafts,
    )
