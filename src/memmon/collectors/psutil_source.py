"""
Memory stat source implementation using the 'psutil' library.

This source works on every platform psutil supports. The resident-set size
comes from `memory_info().rss`. psutil has no portable counter for peak
virtual memory, so the peak is `memory_info().peak_wset` where psutil
reports it (Windows) and otherwise the highest `vms` value this source has
observed. The latter only sees peaks that fall on a sampling cycle.
"""

import logging
from typing import Optional, Tuple

import psutil

from ..validation import MemoryStatError
from .base import AbstractMemoryStatSource

logger = logging.getLogger(__name__)


class PsutilStatSource(AbstractMemoryStatSource):
    """
    Reads memory counters through psutil.

    Attributes:
        process: The psutil.Process handle of the monitored process.
    """

    def __init__(self, pid: Optional[int] = None):
        super().__init__(pid)
        try:
            self.process = psutil.Process(self.pid)
        except psutil.Error as e:
            raise MemoryStatError(f"Cannot attach to PID {self.pid}: {e}") from e
        self._observed_vms_peak = 0

    def _memory_info(self):
        try:
            return self.process.memory_info()
        except psutil.Error as e:
            raise MemoryStatError(f"psutil memory_info failed for PID {self.pid}: {e}") from e

    def _peak_from(self, mem_info) -> int:
        peak_wset = getattr(mem_info, "peak_wset", None)
        if peak_wset is not None:
            return int(peak_wset)

        self._observed_vms_peak = max(self._observed_vms_peak, int(mem_info.vms))
        return self._observed_vms_peak

    def peak_bytes(self) -> int:
        return self._peak_from(self._memory_info())

    def resident_bytes(self) -> int:
        return int(self._memory_info().rss)

    def read(self) -> Tuple[int, int]:
        mem_info = self._memory_info()
        return self._peak_from(mem_info), int(mem_info.rss)
