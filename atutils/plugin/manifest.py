"""
Package Manifest Loading.

This module reads ``package.json`` manifests from installed modules.

Key features:
- JSON loading with path-carrying errors
- PluginModule construction from a manifest
"""

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from atutils.errors import AtUtilsError
from atutils.plugin.scanner import DiscoveryIOError

MANIFEST_FILENAME = "package.json"


class ManifestError(AtUtilsError):
    """Base exception for manifest-related errors."""

    pass


class ManifestParseError(ManifestError):
    """Raised when a manifest or schema file is not valid JSON."""

    def __init__(self, path: str | Path, reason: str = ""):
        self.path = str(path)
        message = f"Failed to load {self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


@dataclass
class PluginModule:
    """
    A framework plugin discovered on disk.

    Attributes:
        name: Package name
        version: Package version (free-form)
        dependencies: Runtime dependencies, name -> specifier
        devDependencies: Development dependencies, name -> specifier
        path: Plugin root directory
    """

    name: str
    version: str
    dependencies: dict[str, str] = field(default_factory=dict)
    devDependencies: dict[str, str] = field(default_factory=dict)
    path: str = ""

    @classmethod
    def from_manifest(cls, data: dict[str, Any], path: str | Path = "") -> "PluginModule":
        return cls(
            name=data.get("name", ""),
            version=data.get("version", ""),
            dependencies=dict(data.get("dependencies") or {}),
            devDependencies=dict(data.get("devDependencies") or {}),
            path=str(path),
        )


def read_json(file_path: str | Path) -> Any:
    """
    Read and parse a JSON file.

    Args:
        file_path: Path to the JSON file

    Returns:
        Parsed JSON document

    Raises:
        DiscoveryIOError: If the file cannot be read
        ManifestParseError: If the file is not valid JSON
    """
    try:
        with open(file_path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ManifestParseError(file_path, str(e)) from e
    except OSError as e:
        raise DiscoveryIOError(file_path, e.strerror or str(e)) from e


async def load_json(file_path: str | Path) -> Any:
    """Async wrapper around read_json."""
    return await asyncio.to_thread(read_json, file_path)


async def load_package(directory: str | Path) -> dict[str, Any]:
    """Load the package.json found in directory."""
    data = await load_json(Path(directory) / MANIFEST_FILENAME)
    if not isinstance(data, dict):
        raise ManifestParseError(Path(directory) / MANIFEST_FILENAME, "expected a JSON object")
    return data
