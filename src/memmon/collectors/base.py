"""
Defines the abstract interface for memory stat sources.

A stat source reads the current process's own memory counters from whatever
mechanism the platform offers. The monitor only needs two numbers per
sampling cycle: the peak virtual memory size and the current resident-set
size, both in bytes.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


class AbstractMemoryStatSource(ABC):
    """
    Abstract base class for memory stat sources.

    Subclasses implement `peak_bytes` and `resident_bytes`. Both must raise
    MemoryStatError when the counters cannot be read; the sampling loop
    treats that as a skipped cycle, never as a fatal error.
    """

    def __init__(self, pid: Optional[int] = None):
        """
        Initializes the stat source.

        Args:
            pid: Process to read counters for. Defaults to the current process.
        """
        self.pid = pid if pid is not None else os.getpid()
        logger.debug(f"Initializing {self.__class__.__name__} for PID {self.pid}")

    @abstractmethod
    def peak_bytes(self) -> int:
        """Returns the peak virtual memory size of the process in bytes."""
        pass

    @abstractmethod
    def resident_bytes(self) -> int:
        """Returns the current resident-set size of the process in bytes."""
        pass

    def read(self) -> Tuple[int, int]:
        """
        Reads both counters for one sampling cycle.

        Sources that can fetch both values with a single query override this.

        Returns:
            A (peak_bytes, resident_bytes) tuple.
        """
        return self.peak_bytes(), self.resident_bytes()
