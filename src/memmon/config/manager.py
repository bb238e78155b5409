"""
Configuration management and singleton pattern.

This module provides the main configuration loading interface and caches the
loaded configuration so it is parsed only once.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import MonitorConfig
from ..validation import handle_config_error, ErrorSeverity
from .loader import load_monitor_section
from .validators import validate_monitor_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[MonitorConfig] = None

# Default configuration file, looked up in the current working directory.
# Override with set_config_path() (the CLI does this for --config).
_CONFIG_FILE_PATH = Path("memmon.toml")


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path and drop any cached configuration.

    Args:
        config_path: Path to the TOML configuration file
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def get_config_path() -> Path:
    return _CONFIG_FILE_PATH


def clear_config_cache() -> None:
    """Clear the cached configuration, forcing a reload on next access."""
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def load_monitor_config(config_path: Path) -> MonitorConfig:
    """
    Load and validate a monitor configuration file.

    A relative `output_path` is resolved against the configuration file's
    directory.

    Args:
        config_path: Path to the TOML configuration file

    Returns:
        Validated MonitorConfig instance

    Raises:
        FileNotFoundError: If the configuration file is missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the TOML file is malformed
    """
    config_path = Path(config_path)
    try:
        monitor_data = load_monitor_section(config_path)
        config = validate_monitor_config(monitor_data, base_dir=config_path.parent)
    except FileNotFoundError as e:
        handle_config_error(
            error=e,
            context="loading configuration file",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise
    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise

    logger.info(f"Loaded monitor configuration: output={config.output_path}, "
                f"granularity={config.granularity_ms}ms")
    return config


def get_config() -> MonitorConfig:
    """
    Get the monitor configuration, loading it on first access.

    Returns:
        The cached MonitorConfig instance

    Raises:
        FileNotFoundError: If the configuration file is missing
        ValidationError: If configuration validation fails
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_monitor_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    return _CONFIG is not None
