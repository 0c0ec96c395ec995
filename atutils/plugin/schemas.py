"""
Configuration Schema Collection.

This module gathers the configuration schemas declared by installed modules.

Each module may ship ``conf/config.schema.json``; its owning package.json
lives one directory above ``conf/``. A malformed manifest or schema aborts
the whole collection.
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from atutils.plugin.manifest import load_json, load_package
from atutils.plugin.scanner import scan_tree

logger = logging.getLogger(__name__)

SCHEMA_SUFFIX = os.path.join("conf", "config.schema.json")


def super_user_schema() -> dict[str, Any]:
    """Schema describing the super user account created on install."""
    return {
        "properties": {
            "superUser": {
                "title": "superuser",
                "type": "object",
                "properties": {
                    "email": {
                        "description": "Email address for the user",
                        "type": "string",
                        "format": "email",
                    },
                    "password": {
                        "description": "Password for the user",
                        "type": "string",
                        "format": "password",
                    },
                    "confirmPassword": {
                        "description": "Re-enter password",
                        "type": "string",
                        "format": "password",
                    },
                },
                "required": ["email", "password", "confirmPassword"],
            }
        }
    }


@dataclass
class ConfigSchemaEntry:
    """
    A module's configuration contract.

    Attributes:
        name: Package name
        description: Package description
        version: Package version
        schema: Parsed JSON schema document
    """

    name: str
    description: str
    version: str
    schema: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "schema": self.schema,
        }


@dataclass
class SchemaCollection:
    """Module config schemas keyed by package name, plus the super user schema."""

    config: dict[str, ConfigSchemaEntry] = field(default_factory=dict)
    user: dict[str, Any] = field(default_factory=super_user_schema)

    def to_dict(self) -> dict[str, Any]:
        return {
            "config": {k: v.to_dict() for k, v in self.config.items()},
            "user": self.user,
        }


async def _load_entry(schema_path: str) -> ConfigSchemaEntry:
    package_dir = Path(schema_path).parent.parent
    package, schema = await asyncio.gather(load_package(package_dir), load_json(schema_path))
    return ConfigSchemaEntry(
        name=package.get("name", ""),
        description=package.get("description", ""),
        version=package.get("version", ""),
        schema=schema,
    )


async def collect_schemas(modules_dir: str | Path) -> SchemaCollection:
    """
    Collect every configuration schema under an installed modules directory.

    Args:
        modules_dir: Installed modules root (usually ``<app>/node_modules``)

    Returns:
        SchemaCollection with one entry per package name

    Raises:
        DiscoveryIOError: If part of the tree cannot be read
        ManifestParseError: If a manifest or schema is not valid JSON
    """
    paths = sorted(await scan_tree(modules_dir, SCHEMA_SUFFIX))
    logger.debug("Found %d config schemas under %s", len(paths), modules_dir)

    entries = await asyncio.gather(*(_load_entry(p) for p in paths))

    collection = SchemaCollection()
    for entry in entries:
        collection.config[entry.name] = entry
    return collection
