"""
Factory for memory stat sources.
"""

import logging
from typing import Optional

from .base import AbstractMemoryStatSource

logger = logging.getLogger(__name__)


def create_stat_source(kind: str = "auto", pid: Optional[int] = None) -> AbstractMemoryStatSource:
    """
    Create a memory stat source.

    Args:
        kind: "proc" for the /proc status reader, "psutil" for the psutil
            reader, or "auto" to use /proc when it is available and fall back
            to psutil otherwise.
        pid: Process to monitor. Defaults to the current process.

    Returns:
        A memory stat source instance

    Raises:
        ValueError: If the kind is unknown
    """
    from .proc_status import ProcStatusSource
    from .psutil_source import PsutilStatSource

    if kind == "auto":
        kind = "proc" if ProcStatusSource.is_available(pid) else "psutil"
        logger.debug(f"Auto-selected '{kind}' memory stat source")

    if kind == "proc":
        return ProcStatusSource(pid)
    elif kind == "psutil":
        return PsutilStatSource(pid)
    else:
        raise ValueError(f"Unknown memory stat source: {kind}")
