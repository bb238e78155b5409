"""
The memory monitor: background sampling loop and its lifecycle.

A MemMonitor opens its output file, then spawns one daemon thread that
samples the process's peak virtual memory and resident-set size every
`granularity_ms` milliseconds. Samples are buffered in memory and flushed to
the output file whenever the buffer's estimated size exceeds the memory
budget, when the host calls `flush()`, and once more when the monitor is
closed.

Usage::

    with MemMonitor("memory.csv", granularity_ms=20) as monitor:
        load_data()
        monitor.declare_event("train")
        train()
"""

import atexit
import logging
import threading
import time
from pathlib import Path
from typing import Optional, Union

from ..collectors import AbstractMemoryStatSource, create_stat_source
from ..models.config import (
    DEFAULT_GRANULARITY_MS,
    DEFAULT_MEMORY_BUDGET_MB,
    STAT_SOURCE_KINDS,
    MonitorConfig,
    budget_bytes,
)
from ..models.sample import MemorySample, MonitorState
from ..storage.csv_writer import CsvSampleWriter
from ..validation import (
    MemoryStatError,
    MonitorStateError,
    handle_file_error,
    validate_enum_choice,
    validate_positive_float,
)
from .buffer import DEFAULT_SAMPLE_SIZE_BYTES, SampleBuffer
from .events import EventRegistry

logger = logging.getLogger(__name__)

# The most recently started monitor that is still running.
_active_monitor: Optional["MemMonitor"] = None
_active_lock = threading.Lock()


def active_monitor() -> Optional["MemMonitor"]:
    """Return the most recently started monitor that is still running, if any."""
    with _active_lock:
        return _active_monitor


def declare_event(name: str) -> Optional[int]:
    """
    Declare an event on the active monitor.

    Lets code deep inside the host program mark phases without passing the
    monitor around. Does nothing when no monitor is running.

    Returns:
        The new event id, or None if no monitor is active.
    """
    monitor = active_monitor()
    if monitor is None:
        logger.debug(f"No active monitor, ignoring event '{name}'")
        return None
    return monitor.declare_event(name)


class MemMonitor:
    """
    Samples the memory usage of a process in a background thread.

    Construction opens the output file and starts sampling; `close()` stops
    the thread, writes every remaining sample and closes the file. A closed
    monitor cannot be restarted.

    Attributes:
        output_path: File the samples are written to.
        granularity_ms: Interval between sampling cycles in milliseconds.
        memory_budget_bytes: Buffered samples are flushed above this estimate.
        stat_source: Reader of the process's memory counters.
        events: Registry of declared events.
        buffer: Samples captured but not yet written.
    """

    def __init__(
        self,
        output_path: Union[str, Path],
        granularity_ms: float = DEFAULT_GRANULARITY_MS,
        memory_budget_mb: float = DEFAULT_MEMORY_BUDGET_MB,
        stat_source: Union[AbstractMemoryStatSource, str, None] = None,
        sample_size: int = DEFAULT_SAMPLE_SIZE_BYTES,
    ):
        """
        Validates the configuration, opens the output file and starts sampling.

        Args:
            output_path: File to write samples to. It is truncated if it exists.
            granularity_ms: Sampling interval in milliseconds, must be > 0.
            memory_budget_mb: Flush threshold for buffered samples in MiB, must be > 0.
            stat_source: A stat source instance, a kind accepted by
                `create_stat_source`, or None for automatic selection.
            sample_size: Estimated bytes per buffered sample.

        Raises:
            ValidationError: If a configuration value is invalid.
            OSError: If the output file cannot be opened for writing.
            MemoryStatError: If the stat source cannot attach to the process.
        """
        self._state = MonitorState.CREATED

        self.granularity_ms = validate_positive_float(
            granularity_ms, min_value=0.0, exclusive_min=True, field_name="granularity_ms"
        )
        budget_mb = validate_positive_float(
            memory_budget_mb, min_value=0.0, exclusive_min=True, field_name="memory_budget_mb"
        )
        self.memory_budget_bytes = budget_bytes(budget_mb)
        self.output_path = Path(output_path)

        if stat_source is None or isinstance(stat_source, str):
            kind = validate_enum_choice(
                stat_source or "auto", STAT_SOURCE_KINDS, field_name="stat_source"
            )
            stat_source = create_stat_source(kind)
        self.stat_source = stat_source

        self.events = EventRegistry()
        self.buffer = SampleBuffer(self.memory_budget_bytes, sample_size)

        self._stop_event = threading.Event()
        self._state_lock = threading.Lock()
        # Serializes loop-triggered, host-triggered and final flushes.
        self._flush_lock = threading.Lock()
        self._samples_captured = 0
        self._samples_written = 0
        self._failed_reads = 0
        self._flush_count = 0
        self._flush_failures = 0

        self._start_ns = time.monotonic_ns()
        try:
            self._writer = CsvSampleWriter(self.output_path, self._start_ns)
        except OSError as e:
            handle_file_error(
                error=e,
                context=f"opening monitor output {self.output_path}",
                reraise=True,
                logger=logger,
            )
            raise

        self._thread = threading.Thread(
            target=self._run, name=f"memmon-{self.pid}", daemon=True
        )
        try:
            self._thread.start()
        except RuntimeError:
            self._writer.close()
            raise

        self._state = MonitorState.RUNNING
        atexit.register(self.close)
        self._set_active()
        logger.info(
            f"Memory monitor started for PID {self.pid}: output={self.output_path}, "
            f"granularity={self.granularity_ms}ms, budget={self.memory_budget_bytes} bytes, "
            f"source={self.stat_source.__class__.__name__}"
        )

    @classmethod
    def from_config(cls, config: MonitorConfig) -> "MemMonitor":
        """Create and start a monitor from a MonitorConfig."""
        return cls(
            config.output_path,
            granularity_ms=config.granularity_ms,
            memory_budget_mb=config.memory_budget_mb,
            stat_source=config.stat_source,
        )

    # --- Introspection ---

    @property
    def pid(self) -> int:
        return self.stat_source.pid

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is MonitorState.RUNNING

    @property
    def granularity_seconds(self) -> float:
        return self.granularity_ms / 1000.0

    @property
    def start_ns(self) -> int:
        return self._start_ns

    @property
    def samples_captured(self) -> int:
        return self._samples_captured

    @property
    def samples_written(self) -> int:
        return self._samples_written

    @property
    def failed_reads(self) -> int:
        return self._failed_reads

    @property
    def flush_count(self) -> int:
        """Number of flushes that wrote at least one sample."""
        return self._flush_count

    @property
    def flush_failures(self) -> int:
        """Number of loop-triggered flushes that raised and were retried later."""
        return self._flush_failures

    @property
    def pending_samples(self) -> int:
        return len(self.buffer)

    # --- Sampling loop ---

    def _run(self) -> None:
        logger.debug(f"Sampling loop started (interval: {self.granularity_seconds}s)")
        while not self._stop_event.is_set():
            self._sample_once()

            if self.buffer.exceeds_budget():
                self._flush_from_loop()

            # Returns early as soon as close() sets the stop event.
            self._stop_event.wait(self.granularity_seconds)
        logger.debug(f"Sampling loop finished after {self._samples_captured} samples")

    def _sample_once(self) -> None:
        timestamp_ns = time.monotonic_ns()
        event_id = self.events.current_id()
        try:
            vm_peak, vm_rss = self.stat_source.read()
        except (MemoryStatError, OSError) as e:
            self._failed_reads += 1
            logger.debug(f"Skipping sample, memory query failed: {e}")
            return
        except Exception as e:
            self._failed_reads += 1
            logger.warning(f"Skipping sample, unexpected error reading memory: {e}", exc_info=False)
            return

        self.buffer.append(MemorySample(
            timestamp_ns=timestamp_ns,
            pid=self.pid,
            vm_peak=vm_peak,
            vm_rss=vm_rss,
            event_id=event_id,
        ))
        self._samples_captured += 1

    def _flush_from_loop(self) -> None:
        try:
            self._flush()
        except Exception as e:
            # The samples stay buffered and are retried on the next trigger.
            self._flush_failures += 1
            logger.warning(
                f"Flush to {self.output_path} failed, keeping {len(self.buffer)} samples buffered: {e}"
            )

    def _flush(self) -> int:
        with self._flush_lock:
            written = self.buffer.flush(self._writer, self.events.name_of)
            if written:
                self._samples_written += written
                self._flush_count += 1
            return written

    # --- Host-facing API ---

    def declare_event(self, name: str) -> int:
        """
        Mark the start of a new phase of the host program.

        Samples captured from now on are tagged with this event's name.

        Returns:
            The id of the new event.
        """
        return self.events.declare(name)

    event = declare_event

    def flush(self) -> int:
        """
        Write all buffered samples to the output file now.

        Returns:
            Number of samples written.

        Raises:
            MonitorStateError: If the monitor has been closed.
            OSError: If writing fails; the samples stay buffered.
        """
        if self._state is MonitorState.STOPPED:
            raise MonitorStateError("Cannot flush a stopped memory monitor")
        return self._flush()

    def close(self) -> None:
        """
        Stop sampling, write the remaining samples and close the output file.

        Blocks until the sampling thread has exited and the final flush is
        done. Calling close() again is a no-op.

        Raises:
            OSError: If the final flush fails. The output file is closed anyway.
        """
        with self._state_lock:
            if self._state is not MonitorState.RUNNING:
                return
            self._state = MonitorState.STOPPED

        atexit.unregister(self.close)
        self._clear_active()
        logger.info(f"Stopping memory monitor for PID {self.pid}")

        self._stop_event.set()
        self._thread.join()

        try:
            self._flush()
        except Exception as e:
            handle_file_error(
                error=e,
                context=f"final flush to {self.output_path}, {len(self.buffer)} samples lost",
                reraise=True,
                logger=logger,
            )
        finally:
            self._writer.close()
            if self._failed_reads:
                logger.warning(f"{self._failed_reads} memory queries failed during monitoring")

        logger.info(
            f"Memory monitor stopped: {self._samples_written} samples written to "
            f"{self.output_path} in {self._flush_count} flushes"
        )

    def _set_active(self) -> None:
        global _active_monitor
        with _active_lock:
            _active_monitor = self

    def _clear_active(self) -> None:
        global _active_monitor
        with _active_lock:
            if _active_monitor is self:
                _active_monitor = None

    def __enter__(self) -> "MemMonitor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"MemMonitor(output_path={str(self.output_path)!r}, "
            f"granularity_ms={self.granularity_ms}, state={self._state.value})"
        )
