"""
Runtime data models.

This module contains the data structures produced while a monitor is running:
the individual memory samples and the monitor's lifecycle state.
"""

from dataclasses import dataclass
from enum import Enum


class MonitorState(Enum):
    """Lifecycle states of a MemMonitor. STOPPED is terminal."""

    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class MemorySample:
    """
    One observation of the monitored process's memory.
    """

    # Capture instant from time.monotonic_ns(); immune to wall-clock changes.
    timestamp_ns: int
    # Process ID of the monitored process.
    pid: int
    # Peak virtual memory size in bytes.
    vm_peak: int
    # Resident-set size in bytes.
    vm_rss: int
    # Index into the event registry of the event active at capture time.
    event_id: int = 0
