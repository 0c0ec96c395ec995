"""
at-utils Configuration - Settings and application config files.

This package provides:
- CLI settings from TOML with environment overrides
- Reading and writing the application's conf/<env>.config.js

Example usage:
    from atutils.config import load_settings, save_app_config

    settings = load_settings()
    save_app_config("/srv/aat", {"adapt-authoring-server": {"port": 5678}}, settings.node_env)
"""

from atutils.config.app_config import ConfigError, load_app_config, save_app_config
from atutils.config.settings import Settings, SettingsError, load_settings

__all__ = [
    "ConfigError",
    "Settings",
    "SettingsError",
    "load_app_config",
    "load_settings",
    "save_app_config",
]
