"""
Configuration management for the memmon package.

This module loads, validates and caches the monitor configuration from a
TOML file.
"""

from .manager import (
    clear_config_cache,
    get_config,
    get_config_path,
    is_config_loaded,
    load_monitor_config,
    set_config_path,
)
from .loader import load_monitor_section, load_toml_file
from .validators import validate_monitor_config

__all__ = [
    "get_config",
    "get_config_path",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "load_monitor_config",
    "load_toml_file",
    "load_monitor_section",
    "validate_monitor_config",
]
