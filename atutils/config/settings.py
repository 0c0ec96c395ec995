"""
CLI Settings.

This module loads the settings that drive at-utils itself: which
repository to install from, GitHub credentials, the target environment
and the host prerequisites.

Example ``at-utils.toml``:

    [github]
    org = "adapt-security"
    repo = "adapt-authoring"

    [app]
    node_env = "production"

    [prerequisites]
    git = ">=2"
    node = ">=18"
    npm = ">=8"

``GITHUB_USER``, ``GITHUB_TOKEN`` and ``NODE_ENV`` override the file.
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from atutils import GITHUB_ORG, GITHUB_ORG_URL, GITHUB_REPO
from atutils.errors import AtUtilsError
from atutils.release.github import GITHUB_API_URL

DEFAULT_SETTINGS_FILE = Path("at-utils.toml")
SETTINGS_ENV_VAR = "AT_UTILS_CONFIG"


class SettingsError(AtUtilsError):
    """Raised when the settings file is unreadable or invalid."""

    pass


def default_prerequisites() -> dict[str, str]:
    return {"git": ">=2", "node": ">=18", "npm": ">=8"}


@dataclass
class Settings:
    """
    Resolved at-utils settings.

    Attributes:
        github_org: Repository owner on GitHub
        github_repo: Application repository name
        github_org_url: Clone URL root for the owner
        github_api_url: GitHub API root
        github_user: User for authenticated API requests
        github_token: Token for authenticated API requests
        node_env: Application environment (selects conf/<env>.config.js)
        prerequisites: Tool name -> required version range
    """

    github_org: str = GITHUB_ORG
    github_repo: str = GITHUB_REPO
    github_org_url: str = GITHUB_ORG_URL
    github_api_url: str = GITHUB_API_URL
    github_user: str | None = None
    github_token: str | None = None
    node_env: str = "production"
    prerequisites: dict[str, str] = field(default_factory=default_prerequisites)


def _read_settings_file(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise SettingsError(f"Settings file not found: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise SettingsError(f"Failed to parse settings file {path}: {e}") from e
    except OSError as e:
        raise SettingsError(f"Cannot read settings file {path}: {e}") from e


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise SettingsError(f"[{name}] must be a table")
    return section


def settings_from_dict(data: dict[str, Any], env: Mapping[str, str] | None = None) -> Settings:
    """
    Build Settings from parsed TOML data and environment overrides.

    Raises:
        SettingsError: If a section or value has the wrong type
    """
    env = os.environ if env is None else env
    github = _section(data, "github")
    app = _section(data, "app")
    prereqs = _section(data, "prerequisites") or default_prerequisites()

    for name, required in prereqs.items():
        if not isinstance(required, str):
            raise SettingsError(f"Prerequisite '{name}' must be a version range string")

    settings = Settings(
        github_org=github.get("org", GITHUB_ORG),
        github_repo=github.get("repo", GITHUB_REPO),
        github_api_url=github.get("api_url", GITHUB_API_URL),
        github_user=env.get("GITHUB_USER") or github.get("user"),
        github_token=env.get("GITHUB_TOKEN") or github.get("token"),
        node_env=env.get("NODE_ENV") or app.get("node_env", "production"),
        prerequisites=dict(prereqs),
    )
    settings.github_org_url = github.get("org_url", f"https://github.com/{settings.github_org}")
    return settings


def load_settings(path: Path | None = None, env: Mapping[str, str] | None = None) -> Settings:
    """
    Load settings from a TOML file.

    The file is looked up at path, then $AT_UTILS_CONFIG, then
    ./at-utils.toml. A missing default file yields default settings; a
    missing explicitly named file is an error.

    Raises:
        SettingsError: If the file cannot be read or is invalid
    """
    env = os.environ if env is None else env
    explicit = path is not None or SETTINGS_ENV_VAR in env
    path = Path(path or env.get(SETTINGS_ENV_VAR) or DEFAULT_SETTINGS_FILE)

    if not explicit and not path.exists():
        return settings_from_dict({}, env)
    return settings_from_dict(_read_settings_file(path), env)
