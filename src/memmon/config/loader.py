"""
Configuration file loading utilities.

This module handles the low-level loading and parsing of the TOML
configuration file.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

from ..validation import handle_config_error, ErrorSeverity

logger = logging.getLogger(__name__)


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Read a TOML file into a dict.

    A malformed file is logged as critical before the decode error is
    re-raised; a missing one raises FileNotFoundError without touching the
    parser.
    """
    file_path = Path(file_path)
    if not file_path.is_file():
        raise FileNotFoundError(f"{description} not found: {file_path}")

    logger.debug(f"Reading {description} {file_path}")
    try:
        with file_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"decoding {description} {file_path}",
            severity=ErrorSeverity.CRITICAL,
            logger=logger,
        )
        raise
    logger.info(f"Read {description} {file_path} ({len(data)} top-level keys)")
    return data


def load_monitor_section(config_path: Path) -> Dict[str, Any]:
    """
    Load the `[monitor]` table of a configuration file.

    Args:
        config_path: Path to the TOML configuration file

    Returns:
        The `[monitor]` table, or an empty dict if the file has none
    """
    data = load_toml_file(config_path, "monitor configuration file")
    monitor_data = data.get("monitor", {})
    if not isinstance(monitor_data, dict):
        raise KeyError(f"[monitor] in {config_path} must be a table")
    return monitor_data
