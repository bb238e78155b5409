"""
Configuration validation utilities.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import (
    DEFAULT_GRANULARITY_MS,
    DEFAULT_MEMORY_BUDGET_MB,
    LOG_LEVELS,
    STAT_SOURCE_KINDS,
    MonitorConfig,
)
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_positive_float,
)

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_PATH = "memmon.csv"

KNOWN_KEYS = {"output_path", "granularity_ms", "memory_budget_mb", "stat_source", "log_level"}


def validate_monitor_config(
    monitor_data: Dict[str, Any], base_dir: Optional[Path] = None
) -> MonitorConfig:
    """
    Validate and create a MonitorConfig from raw configuration data.

    Args:
        monitor_data: Raw `[monitor]` table from TOML
        base_dir: Directory that a relative output_path is resolved against

    Returns:
        Validated MonitorConfig instance

    Raises:
        ValidationError: If validation fails
    """
    unknown = sorted(set(monitor_data) - KNOWN_KEYS)
    if unknown:
        logger.warning(f"Ignoring unknown monitor settings: {', '.join(unknown)}")

    output_path = monitor_data.get("output_path", DEFAULT_OUTPUT_PATH)
    if not isinstance(output_path, str) or not output_path.strip():
        raise ValidationError(
            "monitor.output_path must be a non-empty string",
            field_name="monitor.output_path",
            value=output_path,
        )
    output = Path(output_path).expanduser()
    if base_dir is not None and not output.is_absolute():
        output = base_dir / output

    granularity_ms = validate_positive_float(
        monitor_data.get("granularity_ms", DEFAULT_GRANULARITY_MS),
        min_value=0.0,
        max_value=3_600_000.0,  # one hour
        exclusive_min=True,
        field_name="monitor.granularity_ms",
    )

    memory_budget_mb = validate_positive_float(
        monitor_data.get("memory_budget_mb", DEFAULT_MEMORY_BUDGET_MB),
        min_value=0.0,
        exclusive_min=True,
        field_name="monitor.memory_budget_mb",
    )

    stat_source = validate_enum_choice(
        monitor_data.get("stat_source", "auto"),
        STAT_SOURCE_KINDS,
        field_name="monitor.stat_source",
    )

    log_level = validate_enum_choice(
        monitor_data.get("log_level", "INFO"),
        LOG_LEVELS,
        field_name="monitor.log_level",
        case_sensitive=False,
    )

    return MonitorConfig(
        output_path=output,
        granularity_ms=granularity_ms,
        memory_budget_mb=memory_budget_mb,
        stat_source=stat_source,
        log_level=log_level,
    )
