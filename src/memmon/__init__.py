"""
memmon: an embeddable process memory sampler.

A MemMonitor records the process's peak virtual memory and resident-set size
at a fixed interval in a background thread, tags each sample with the most
recently declared event, and writes the series to a semicolon-delimited file.

The package is organized into:
- monitoring: sampling loop, sample buffer, event registry
- collectors: readers of the process's memory counters
- storage: output file writer and reader
- config: TOML configuration loading and validation
- validation: exceptions and value validators
- cli: the `memmon` command

Usage:
    Programmatically:
        from memmon import MemMonitor
        with MemMonitor("memory.csv", granularity_ms=50) as monitor:
            monitor.declare_event("phase-a")
            ...

    From command line:
        memmon -o memory.csv my_script.py --script-arg
"""

from .config import get_config, clear_config_cache, set_config_path, load_monitor_config
from .cli import main_cli

from .models import MemorySample, MonitorConfig, MonitorState

from .monitoring import (
    EventRegistry,
    MemMonitor,
    SampleBuffer,
    active_monitor,
    declare_event,
)

from .collectors import (
    AbstractMemoryStatSource,
    ProcStatusSource,
    PsutilStatSource,
    create_stat_source,
)

from .storage import CsvSampleWriter, load_samples

from .validation import (
    MemoryStatError,
    MonitorStateError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "load_monitor_config",
    "main_cli",
    "MemorySample",
    "MonitorConfig",
    "MonitorState",
    "EventRegistry",
    "MemMonitor",
    "SampleBuffer",
    "active_monitor",
    "declare_event",
    "AbstractMemoryStatSource",
    "ProcStatusSource",
    "PsutilStatSource",
    "create_stat_source",
    "CsvSampleWriter",
    "load_samples",
    "MemoryStatError",
    "MonitorStateError",
    "ValidationError",
]
