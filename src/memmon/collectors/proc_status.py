"""
Memory stat source backed by the Linux proc filesystem.

Reads the `VmPeak` and `VmRSS` lines of `/proc/<pid>/status`, which the
kernel reports in kilobytes.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..validation import MemoryStatError
from .base import AbstractMemoryStatSource

logger = logging.getLogger(__name__)


class ProcStatusSource(AbstractMemoryStatSource):
    """
    Reads VmPeak and VmRSS from `/proc/<pid>/status`.

    Attributes:
        status_path: The status file this source parses.
    """

    FIELDS = ("VmPeak", "VmRSS")

    def __init__(self, pid: Optional[int] = None, proc_root: Path = Path("/proc")):
        super().__init__(pid)
        self.status_path = Path(proc_root) / str(self.pid) / "status"

    @classmethod
    def is_available(cls, pid: Optional[int] = None, proc_root: Path = Path("/proc")) -> bool:
        """Check whether the status file exists for the given process."""
        source = cls(pid, proc_root)
        return source.status_path.is_file()

    def _read_status(self) -> Dict[str, int]:
        try:
            text = self.status_path.read_text()
        except OSError as e:
            raise MemoryStatError(f"Cannot read {self.status_path}: {e}") from e

        values: Dict[str, int] = {}
        for line in text.splitlines():
            key, sep, rest = line.partition(":")
            if not sep or key not in self.FIELDS:
                continue
            # Format: "VmRSS:\t   12345 kB"
            parts = rest.split()
            try:
                amount = int(parts[0])
            except (IndexError, ValueError) as e:
                raise MemoryStatError(f"Malformed {key} line in {self.status_path}: {line!r}") from e
            unit = parts[1].lower() if len(parts) > 1 else "kb"
            values[key] = amount * 1024 if unit == "kb" else amount

        missing = [field for field in self.FIELDS if field not in values]
        if missing:
            raise MemoryStatError(f"{self.status_path} has no {', '.join(missing)} entry")
        return values

    def peak_bytes(self) -> int:
        return self._read_status()["VmPeak"]

    def resident_bytes(self) -> int:
        return self._read_status()["VmRSS"]

    def read(self) -> Tuple[int, int]:
        values = self._read_status()
        return values["VmPeak"], values["VmRSS"]
