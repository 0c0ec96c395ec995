"""
Git Operations for Application Install and Update.

This module provides the git and npm steps used to install and update the
authoring tool.

Key features:
- Clone the application (or a module) at a tag or branch
- Check out another tag and reinstall dependencies
- Read the latest local commit date
- Install modules from local clones
"""

import asyncio
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path

from atutils import GITHUB_ORG_URL, GITHUB_REPO
from atutils.errors import AtUtilsError
from atutils.system.process import ProcessError, run

logger = logging.getLogger(__name__)

LOCAL_MODULES_DIRNAME = "local_adapt_modules"


class GitError(AtUtilsError):
    """Base exception for git-related errors."""

    def __init__(self, message: str, code: str | None = None):
        self.code = code
        super().__init__(message)


async def npm_install(cwd: str | Path, clean: bool = True) -> None:
    """Install npm dependencies with ``npm ci`` (clean) or ``npm install``."""
    logger.info("Installing npm dependencies")
    await run(["npm", "ci" if clean else "install"], cwd)


async def clone_repo(
    cwd: str | Path,
    org_url: str = GITHUB_ORG_URL,
    repo: str = GITHUB_REPO,
    tag: str | None = None,
    clean_install: bool = True,
) -> None:
    """
    Clone a repository and install its dependencies.

    Args:
        cwd: Target directory for the clone
        org_url: Organisation URL hosting the repository
        repo: Repository name
        tag: Tag or branch to check out (defaults to master)
        clean_install: Use ``npm ci`` rather than ``npm install``

    Raises:
        GitError: If the clone fails (code ``GITCLONEEEXIST``)
        ProcessError: If the npm install fails
    """
    url = f"{org_url}/{repo}.git"
    tag = tag or "master"
    logger.info("Cloning %s#%s into %s", url, tag, cwd)
    try:
        await run(["git", "clone", "--branch", tag, url, str(cwd)])
    except ProcessError as e:
        raise GitError(f"Failed to clone git repository, {e}", code="GITCLONEEEXIST") from e

    await npm_install(cwd, clean=clean_install)


async def update_repo(cwd: str | Path, tag: str) -> None:
    """
    Check out tag in an existing clone and reinstall dependencies.

    Args:
        cwd: Application directory
        tag: Tag or branch to check out

    Raises:
        ProcessError: If any git or npm step fails
        GitError: If the old node_modules cannot be removed
    """
    logger.info("Checking out %s in %s", tag, cwd)
    await run(["git", "fetch", "--all", "--tags"], cwd)
    await run(["git", "reset", "--hard"], cwd)
    await run(["git", "checkout", tag], cwd)

    try:
        await asyncio.to_thread(shutil.rmtree, Path(cwd) / "node_modules")
    except FileNotFoundError:
        pass
    except OSError as e:
        raise GitError(f"Failed to remove node_modules in {cwd}: {e}") from e
    await npm_install(cwd, clean=True)


async def last_commit_date(cwd: str | Path | None = None) -> datetime:
    """
    Return the committer date of HEAD.

    Raises:
        ProcessError: If cwd is not a git checkout
        GitError: If git output cannot be parsed
    """
    output = (await run(["git", "log", "-1", "--format=%cI"], cwd)).strip()
    try:
        committed = datetime.fromisoformat(output)
    except ValueError as e:
        raise GitError(f"Unexpected commit date: {output!r}") from e
    if committed.tzinfo is None:
        return committed.replace(tzinfo=timezone.utc)
    return committed


async def install_local_modules(
    cwd: str | Path, modules: list[str], org_url: str = GITHUB_ORG_URL
) -> None:
    """
    Clone modules into the local modules directory and link them in.

    Args:
        cwd: Application directory
        modules: Repository names to clone
        org_url: Organisation URL hosting the modules
    """
    local_dir = Path(cwd) / LOCAL_MODULES_DIRNAME
    await asyncio.gather(
        *(
            clone_repo(local_dir / m, org_url=org_url, repo=m, clean_install=False)
            for m in modules
        )
    )
    # A second install picks up the local clones
    await npm_install(cwd, clean=False)
