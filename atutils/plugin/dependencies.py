"""
Dependency Aggregation.

This module consolidates the dependency declarations of every framework
plugin installed in an application.

Key features:
- Plugin discovery via the ``adapt-authoring.json`` marker file
- Concurrent manifest reads
- Order-independent merge of runtime and dev dependencies
- Single-specifier collapse and self-reference elimination
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from atutils.plugin.manifest import PluginModule, load_package
from atutils.plugin.scanner import scan_tree

logger = logging.getLogger(__name__)

MARKER_FILENAME = "adapt-authoring.json"
MODULES_DIRNAME = "node_modules"

# A dependency maps to one specifier, or a sorted list when plugins disagree
Specifier = str | list[str]


@dataclass
class DependencySet:
    """
    Aggregated dependencies of an application's framework plugins.

    Attributes:
        adapt: Plugin name -> installed version
        all: Runtime dependency -> specifier(s), plugins excluded
        dev: Dev dependency -> specifier(s), plugins excluded
    """

    adapt: dict[str, str] = field(default_factory=dict)
    all: dict[str, Specifier] = field(default_factory=dict)
    dev: dict[str, Specifier] = field(default_factory=dict)

    def to_dict(self) -> dict[str, dict[str, Specifier]]:
        return {"adapt": dict(self.adapt), "all": dict(self.all), "dev": dict(self.dev)}


def _add_specifiers(memo: dict[str, list[str]], declared: dict[str, str]) -> None:
    for name, specifier in declared.items():
        versions = memo.setdefault(name, [])
        if specifier not in versions:
            versions.append(specifier)
            versions.sort()


def _collapse(memo: dict[str, list[str]]) -> dict[str, Specifier]:
    return {
        name: memo[name][0] if len(memo[name]) == 1 else list(memo[name])
        for name in sorted(memo)
    }


def merge_dependencies(plugins: Iterable[PluginModule]) -> DependencySet:
    """
    Merge plugin manifests into a DependencySet.

    The result does not depend on the order of plugins, provided plugin
    names are distinct. With duplicate names the last plugin's version wins.

    Args:
        plugins: Discovered plugin modules

    Returns:
        DependencySet with keys sorted in every map
    """
    adapt: dict[str, str] = {}
    runtime: dict[str, list[str]] = {}
    dev: dict[str, list[str]] = {}

    for plugin in plugins:
        adapt[plugin.name] = plugin.version
        _add_specifiers(runtime, plugin.dependencies)
        _add_specifiers(dev, plugin.devDependencies)

    deps = DependencySet(
        adapt={name: adapt[name] for name in sorted(adapt)},
        all=_collapse(runtime),
        dev=_collapse(dev),
    )
    for name in deps.adapt:
        deps.all.pop(name, None)
        deps.dev.pop(name, None)
    return deps


async def find_plugin_dirs(modules_dir: str | Path) -> list[str]:
    """Return the sorted root directories of every plugin under modules_dir."""
    markers = await scan_tree(modules_dir, MARKER_FILENAME)
    return sorted(os.path.dirname(m) for m in markers)


async def _load_plugin(directory: str) -> PluginModule:
    return PluginModule.from_manifest(await load_package(directory), directory)


async def load_plugins(modules_dir: str | Path) -> list[PluginModule]:
    """
    Discover and load every framework plugin under modules_dir.

    Raises:
        DiscoveryIOError: If part of the tree cannot be read
        ManifestParseError: If a plugin manifest is not valid JSON
    """
    dirs = await find_plugin_dirs(modules_dir)
    logger.debug("Found %d plugins under %s", len(dirs), modules_dir)
    return list(await asyncio.gather(*(_load_plugin(d) for d in dirs)))


async def get_app_dependencies(app_root: str | Path) -> DependencySet:
    """Aggregate the plugin dependencies of the application at app_root."""
    plugins = await load_plugins(Path(app_root) / MODULES_DIRNAME)
    return merge_dependencies(plugins)
