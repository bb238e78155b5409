"""
Data models for the memory monitor.

Configuration Models:
- MonitorConfig: settings for one monitoring session

Runtime Models:
- MemorySample: one immutable memory observation
- MonitorState: lifecycle state of a monitor
"""

from .config import (
    DEFAULT_GRANULARITY_MS,
    DEFAULT_MEMORY_BUDGET_MB,
    LOG_LEVELS,
    STAT_SOURCE_KINDS,
    MonitorConfig,
    budget_bytes,
)
from .sample import MemorySample, MonitorState

__all__ = [
    "DEFAULT_GRANULARITY_MS",
    "DEFAULT_MEMORY_BUDGET_MB",
    "LOG_LEVELS",
    "STAT_SOURCE_KINDS",
    "MonitorConfig",
    "budget_bytes",
    "MemorySample",
    "MonitorState",
]
