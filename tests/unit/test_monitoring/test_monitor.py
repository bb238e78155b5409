"""
Tests for the MemMonitor lifecycle and sampling loop.
"""

import time

import polars as pl
import pytest

import memmon
from memmon.models import MonitorConfig, MonitorState
from memmon.monitoring import MemMonitor, active_monitor, declare_event
from memmon.storage import CsvSampleWriter, elapsed_ms, load_samples
from memmon.validation import MonitorStateError, ValidationError

LARGE_BUDGET_MB = 64


@pytest.mark.unit
class TestConstruction:

    @pytest.mark.parametrize("granularity", [0, -5, "fast"])
    def test_invalid_granularity_fails_without_creating_output(self, output_file, stat_source, granularity):
        with pytest.raises(ValidationError):
            MemMonitor(output_file, granularity_ms=granularity, stat_source=stat_source)
        assert not output_file.exists()

    def test_invalid_budget(self, output_file, stat_source):
        with pytest.raises(ValidationError):
            MemMonitor(output_file, memory_budget_mb=0, stat_source=stat_source)

    def test_unknown_stat_source_kind(self, output_file):
        with pytest.raises(ValidationError):
            MemMonitor(output_file, stat_source="pidstat")

    def test_unwritable_output_fails(self, temp_dir, stat_source):
        with pytest.raises(OSError):
            MemMonitor(temp_dir / "missing" / "out.csv", stat_source=stat_source)
        assert active_monitor() is None

    def test_defaults(self, output_file):
        with MemMonitor(output_file) as monitor:
            assert monitor.granularity_ms == 50
            assert monitor.memory_budget_bytes == 32 * 1024 * 1024
            assert monitor.state is MonitorState.RUNNING
            assert monitor.pid > 0

    def test_from_config(self, output_file, stat_source):
        config = MonitorConfig(
            output_path=output_file, granularity_ms=5, memory_budget_mb=1, stat_source="psutil"
        )
        with MemMonitor.from_config(config) as monitor:
            assert monitor.output_path == output_file
            assert monitor.granularity_ms == 5
            assert monitor.memory_budget_bytes == 1024 * 1024
            assert isinstance(monitor.stat_source, memmon.PsutilStatSource)

    @pytest.mark.parametrize("budget_mb", [1e-7, 0.5 / (1024 * 1024), 2.6 / (1024 * 1024), 0.75])
    def test_budget_matches_config(self, output_file, budget_mb):
        config = MonitorConfig(output_path=output_file, memory_budget_mb=budget_mb, stat_source="psutil")
        with MemMonitor.from_config(config) as monitor:
            assert monitor.memory_budget_bytes == config.memory_budget_bytes
            assert monitor.buffer.budget_bytes == config.memory_budget_bytes
        assert config.memory_budget_bytes >= 1


@pytest.mark.unit
class TestLifecycle:

    def test_close_stops_and_writes_everything(self, output_file, stat_source, test_utils):
        monitor = MemMonitor(
            output_file, granularity_ms=5, memory_budget_mb=LARGE_BUDGET_MB, stat_source=stat_source
        )
        assert test_utils.wait_for(lambda: monitor.samples_captured >= 3)
        monitor.close()

        assert monitor.state is MonitorState.STOPPED
        assert monitor.pending_samples == 0
        lines = test_utils.read_lines(output_file)
        assert lines[0] == "time_ms;pid;VmPeak;VmRSS;event"
        assert len(lines) - 1 == monitor.samples_captured == monitor.samples_written
        assert all(line.split(";")[1] == "4242" for line in lines[1:])

    def test_close_is_idempotent(self, output_file, stat_source):
        monitor = MemMonitor(output_file, granularity_ms=5, stat_source=stat_source)
        monitor.close()
        written = monitor.samples_written
        monitor.close()

        assert monitor.samples_written == written
        assert monitor.state is MonitorState.STOPPED

    def test_context_manager_closes_on_error(self, output_file, stat_source):
        with pytest.raises(RuntimeError):
            with MemMonitor(output_file, granularity_ms=5, stat_source=stat_source) as monitor:
                raise RuntimeError("host failure")

        assert monitor.state is MonitorState.STOPPED
        assert len(load_samples(output_file)) == monitor.samples_captured

    def test_close_interrupts_long_wait(self, output_file, stat_source, test_utils):
        monitor = MemMonitor(output_file, granularity_ms=60_000, stat_source=stat_source)
        assert test_utils.wait_for(lambda: monitor.samples_captured == 1)

        started = time.monotonic()
        monitor.close()

        assert time.monotonic() - started < 2.0
        assert monitor.samples_written == 1

    def test_flush_after_close_raises(self, output_file, stat_source):
        monitor = MemMonitor(output_file, granularity_ms=5, stat_source=stat_source)
        monitor.close()

        with pytest.raises(MonitorStateError):
            monitor.flush()

    def test_manual_flush_writes_pending_samples(self, output_file, stat_source, test_utils):
        with MemMonitor(
            output_file, granularity_ms=5, memory_budget_mb=LARGE_BUDGET_MB, stat_source=stat_source
        ) as monitor:
            assert test_utils.wait_for(lambda: monitor.samples_captured >= 2)
            written = monitor.flush()

            assert written >= 2
            assert len(test_utils.read_lines(output_file)) - 1 >= written

    def test_repr(self, output_file, stat_source):
        with MemMonitor(output_file, stat_source=stat_source) as monitor:
            assert "running" in repr(monitor)
        assert "stopped" in repr(monitor)


@pytest.mark.unit
class TestEvents:

    def test_samples_are_tagged_with_current_event(self, output_file, stat_source, test_utils):
        with MemMonitor(
            output_file, granularity_ms=5, memory_budget_mb=LARGE_BUDGET_MB, stat_source=stat_source
        ) as monitor:
            assert test_utils.wait_for(lambda: monitor.samples_captured >= 2)
            declared_ms = elapsed_ms(time.monotonic_ns(), monitor.start_ns)
            assert monitor.declare_event("phase-a") == 1
            captured = monitor.samples_captured
            assert test_utils.wait_for(lambda: monitor.samples_captured >= captured + 2)

        df = load_samples(output_file)
        events = df["event"].to_list()
        assert events[0] == ""
        assert "phase-a" in events
        # Once the event shows up, every later sample carries it.
        first = events.index("phase-a")
        assert set(events[first:]) == {"phase-a"}
        phase_times = df.filter(pl.col("event") == "phase-a")["time_ms"].to_list()
        assert min(phase_times) >= declared_ms

    def test_event_alias(self, output_file, stat_source):
        with MemMonitor(output_file, stat_source=stat_source) as monitor:
            assert monitor.event("a") == 1
            assert monitor.events.current_id() == 1

    def test_declare_event_after_close_is_accepted(self, output_file, stat_source):
        monitor = MemMonitor(output_file, stat_source=stat_source)
        monitor.close()

        assert monitor.declare_event("late") == 1
        assert monitor.events.names() == ["", "late"]

    def test_module_level_declare_event_targets_active_monitor(self, output_file, stat_source):
        assert declare_event("nobody listening") is None

        with MemMonitor(output_file, stat_source=stat_source) as monitor:
            assert active_monitor() is monitor
            assert memmon.declare_event("from-anywhere") == 1
            assert monitor.events.name_of(1) == "from-anywhere"

        assert active_monitor() is None


@pytest.mark.unit
class TestFailureHandling:

    def test_failed_reads_are_skipped(self, output_file, flaky_stat_source, test_utils):
        monitor = MemMonitor(output_file, granularity_ms=2, stat_source=flaky_stat_source)
        assert test_utils.wait_for(lambda: flaky_stat_source.calls >= 12)
        monitor.close()

        assert monitor.failed_reads == flaky_stat_source.failures >= 4
        assert monitor.samples_captured == flaky_stat_source.calls - flaky_stat_source.failures
        assert len(load_samples(output_file)) == monitor.samples_captured

    def test_loop_flush_failure_is_retried(self, output_file, stat_source, test_utils, monkeypatch):
        original = CsvSampleWriter.write_samples
        attempts = {"count": 0}

        def failing_then_working(writer, samples, resolve_name):
            attempts["count"] += 1
            if attempts["count"] <= 2:
                raise OSError("transient write failure")
            return original(writer, samples, resolve_name)

        monkeypatch.setattr(CsvSampleWriter, "write_samples", failing_then_working)
        tiny_budget_mb = 200 / (1024 * 1024)
        monitor = MemMonitor(
            output_file, granularity_ms=2, memory_budget_mb=tiny_budget_mb,
            stat_source=stat_source, sample_size=100,
        )
        assert test_utils.wait_for(lambda: monitor.samples_written > 0)
        monitor.close()

        assert monitor.flush_failures == 2
        df = load_samples(output_file)
        assert len(df) == monitor.samples_captured
        times = df["time_ms"].to_list()
        assert times == sorted(times)
        rss = df["VmRSS"].to_list()
        assert len(set(rss)) == len(rss)

    def test_final_flush_failure_propagates(self, output_file, stat_source, test_utils, monkeypatch):
        monitor = MemMonitor(
            output_file, granularity_ms=5, memory_budget_mb=LARGE_BUDGET_MB, stat_source=stat_source
        )
        assert test_utils.wait_for(lambda: monitor.samples_captured >= 1)

        def always_fail(samples, resolve_name):
            raise OSError("disk gone")

        monkeypatch.setattr(monitor._writer, "write_samples", always_fail)

        with pytest.raises(OSError, match="disk gone"):
            monitor.close()

        assert monitor.state is MonitorState.STOPPED
        assert monitor._writer.closed
