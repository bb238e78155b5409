"""
Registry of named events.

Events mark phases of the host program. Each declared name gets the next
index; samples are stamped with the index that was current when they were
captured. Index 0 is the implicit empty event that is active before the
host declares anything.
"""

import logging
import threading
from typing import List

logger = logging.getLogger(__name__)

DEFAULT_EVENT_NAME = ""


class EventRegistry:
    """
    Ordered, append-only list of event names with a current event id.

    `declare` is called from host threads while the sampling thread calls
    `current_id` once per cycle. Both go through one lock, so a sample stamped
    with id k was always captured after event k was declared.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._names: List[str] = [DEFAULT_EVENT_NAME]
        self._current_id = 0

    def declare(self, name: str) -> int:
        """
        Append an event and make it the current one.

        Args:
            name: Event name. Non-string values are converted with str().

        Returns:
            The id assigned to the event.
        """
        name = str(name)
        with self._lock:
            self._names.append(name)
            self._current_id = len(self._names) - 1
            event_id = self._current_id
        logger.debug(f"Declared event {event_id}: '{name}'")
        return event_id

    def current_id(self) -> int:
        with self._lock:
            return self._current_id

    def name_of(self, event_id: int) -> str:
        """Return the name of an event id; raises IndexError for unknown ids."""
        if event_id < 0:
            raise IndexError(f"Invalid event id: {event_id}")
        with self._lock:
            return self._names[event_id]

    def names(self) -> List[str]:
        """Snapshot of all event names, indexed by event id."""
        with self._lock:
            return list(self._names)

    def __len__(self) -> int:
        with self._lock:
            return len(self._names)
