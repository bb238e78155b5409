"""
Configuration data models.

This module contains the configuration structure for a monitoring session,
loaded from the `[monitor]` table of a TOML file or built directly.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List

DEFAULT_GRANULARITY_MS: float = 50.0
DEFAULT_MEMORY_BUDGET_MB: float = 32.0

STAT_SOURCE_KINDS: List[str] = ["auto", "proc", "psutil"]
LOG_LEVELS: List[str] = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def budget_bytes(memory_budget_mb: float) -> int:
    """Convert a budget in MiB to whole bytes, never below one byte."""
    return max(1, round(memory_budget_mb * 1024 * 1024))


@dataclass
class MonitorConfig:
    """
    Configuration for a single monitoring session.
    """

    # File the samples are written to. Its parent directory must exist.
    output_path: Path
    # Interval between two sampling cycles, in milliseconds.
    granularity_ms: float = DEFAULT_GRANULARITY_MS
    # Buffered samples are flushed once their estimated size exceeds this.
    memory_budget_mb: float = DEFAULT_MEMORY_BUDGET_MB
    # Which memory stat source to use: "auto", "proc" or "psutil".
    stat_source: str = "auto"
    # Log level applied by the command-line interface.
    log_level: str = "INFO"

    @property
    def granularity_seconds(self) -> float:
        return self.granularity_ms / 1000.0

    @property
    def memory_budget_bytes(self) -> int:
        return budget_bytes(self.memory_budget_mb)
