"""
Memory stat sources.

This module provides the readers that fetch the monitored process's peak
virtual memory and resident-set size:
- ProcStatusSource: parses /proc/<pid>/status (Linux)
- PsutilStatSource: uses psutil (all platforms)
"""

from .base import AbstractMemoryStatSource
from .factory import create_stat_source
from .proc_status import ProcStatusSource
from .psutil_source import PsutilStatSource

__all__ = [
    "AbstractMemoryStatSource",
    "create_stat_source",
    "ProcStatusSource",
    "PsutilStatSource",
]
