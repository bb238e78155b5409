"""
Pytest configuration and shared fixtures for the memmon test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the memmon project.
"""

import shutil
import sys
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Any, Optional, Tuple

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from memmon.collectors.base import AbstractMemoryStatSource  # noqa: E402
from memmon.validation import MemoryStatError  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def output_file(temp_dir):
    """Path for a monitor's output file inside the temporary directory."""
    return temp_dir / "memory.csv"


# ============================================================================
# Fake Stat Source
# ============================================================================


class ScriptedStatSource(AbstractMemoryStatSource):
    """
    Deterministic memory stat source for tests.

    Resident size grows by `step` bytes per successful read and the peak
    tracks it. With `fail_every=n`, every n-th call raises MemoryStatError.
    """

    def __init__(self, base: int = 10 * 1024 * 1024, step: int = 4096,
                 fail_every: Optional[int] = None, pid: int = 4242):
        super().__init__(pid)
        self.base = base
        self.step = step
        self.fail_every = fail_every
        self.calls = 0
        self.failures = 0
        self._current = base
        self._peak = base
        self._lock = threading.Lock()

    def read(self) -> Tuple[int, int]:
        with self._lock:
            self.calls += 1
            if self.fail_every and self.calls % self.fail_every == 0:
                self.failures += 1
                raise MemoryStatError(f"scripted failure on call {self.calls}")
            self._current += self.step
            self._peak = max(self._peak, self._current)
            return self._peak + 1024 * 1024, self._current

    def peak_bytes(self) -> int:
        return self.read()[0]

    def resident_bytes(self) -> int:
        return self.read()[1]


@pytest.fixture
def stat_source():
    """A scripted stat source that never fails."""
    return ScriptedStatSource()


@pytest.fixture
def flaky_stat_source():
    """A scripted stat source that fails on every third call."""
    return ScriptedStatSource(fail_every=3)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def sample_config_data():
    """Sample [monitor] table for testing."""
    return {
        "output_path": "memory.csv",
        "granularity_ms": 20,
        "memory_budget_mb": 8,
        "stat_source": "psutil",
        "log_level": "DEBUG",
    }


@pytest.fixture
def config_file(temp_dir, sample_config_data):
    """Write a configuration file for testing."""
    import toml

    config_path = temp_dir / "memmon.toml"
    with open(config_path, "w") as f:
        toml.dump({"monitor": sample_config_data}, f)
    return config_path


# ============================================================================
# Test Utilities
# ============================================================================


class TestUtils:
    """Utility functions for testing."""

    @staticmethod
    def wait_for(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.005) -> bool:
        """Poll until predicate() is true or the timeout expires."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    @staticmethod
    def read_lines(path: Path) -> list:
        """Return the lines of an output file without trailing newlines."""
        return path.read_text(encoding="utf-8").splitlines()


@pytest.fixture
def test_utils():
    """Provide test utility functions."""
    return TestUtils


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    yield

    from memmon.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(Path("memmon.toml"))
