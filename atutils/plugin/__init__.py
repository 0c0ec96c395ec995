"""
Plugin discovery - Walks an installed module tree.

This package handles:
- Recursive file discovery
- Package manifest loading
- Configuration schema collection
- Dependency aggregation across framework plugins
"""

from atutils.plugin.dependencies import DependencySet, get_app_dependencies
from atutils.plugin.manifest import PluginModule
from atutils.plugin.schemas import ConfigSchemaEntry, SchemaCollection, collect_schemas

__all__ = [
    "ConfigSchemaEntry",
    "DependencySet",
    "PluginModule",
    "SchemaCollection",
    "collect_schemas",
    "get_app_dependencies",
]
