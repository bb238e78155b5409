"""
Memory sampling core.

- EventRegistry: named phases that samples are tagged with
- SampleBuffer: pending samples and the size-triggered flush policy
- MemMonitor: the background sampling loop and its start/stop lifecycle
"""

from .buffer import DEFAULT_SAMPLE_SIZE_BYTES, SampleBuffer
from .events import DEFAULT_EVENT_NAME, EventRegistry
from .monitor import MemMonitor, active_monitor, declare_event

__all__ = [
    "DEFAULT_SAMPLE_SIZE_BYTES",
    "SampleBuffer",
    "DEFAULT_EVENT_NAME",
    "EventRegistry",
    "MemMonitor",
    "active_monitor",
    "declare_event",
]
