"""
Application Config Files.

This module writes and reads the application's ``conf/<env>.config.js``,
an ES module whose default export is a JSON object.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

from atutils.errors import AtUtilsError

logger = logging.getLogger(__name__)

CONFIG_DIRNAME = "conf"

_EXPORT_RE = re.compile(r"^\s*export\s+default\s+(.*?);?\s*$", re.DOTALL)


class ConfigError(AtUtilsError):
    """Raised when an application config file cannot be read or written."""

    pass


def config_path(app_root: str | Path, env: str) -> Path:
    return Path(app_root) / CONFIG_DIRNAME / f"{env}.config.js"


def save_app_config(app_root: str | Path, data: dict[str, Any], env: str) -> Path:
    """
    Write the application config for env.

    Args:
        app_root: Application directory
        data: Config data, keyed by module name
        env: Environment name (e.g. "production")

    Returns:
        Path of the written file

    Raises:
        ConfigError: If the file cannot be written
    """
    path = config_path(app_root, env)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"export default {json.dumps(data, indent=2)};", encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to write config {path}: {e}") from e
    logger.info("Saved config to %s", path)
    return path


def load_app_config(app_root: str | Path, env: str) -> dict[str, Any]:
    """
    Read the application config for env.

    Raises:
        ConfigError: If the file is missing or not in the expected format
    """
    path = config_path(app_root, env)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config {path}: {e}") from e

    match = _EXPORT_RE.match(text)
    if not match:
        raise ConfigError(f"Config {path} has no default export")
    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config {path} is not a JSON object: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} is not a JSON object")
    return data
