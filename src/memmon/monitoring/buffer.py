"""
In-memory buffer of samples awaiting persistence.

The buffer never rejects an append; the sampling loop asks it after each
append whether the estimated footprint exceeds the budget and flushes if so.
The estimate is `sample count * fixed per-sample size`. It does not count
event-name strings or interpreter overhead beyond that fixed size, so the
budget is an approximate ceiling.
"""

import logging
import threading
from typing import List

from ..models.sample import MemorySample
from ..storage.base import NameResolver, SampleSink
from ..validation import validate_positive_integer

logger = logging.getLogger(__name__)

# Rough footprint of one buffered MemorySample: the instance itself, its five
# int objects and the list slot that references it.
DEFAULT_SAMPLE_SIZE_BYTES = 200


class SampleBuffer:
    """
    Append-only sample buffer with a byte budget.

    Attributes:
        budget_bytes: Flush threshold for the estimated footprint.
        sample_size: Estimated bytes per buffered sample.
    """

    def __init__(self, budget_bytes: int, sample_size: int = DEFAULT_SAMPLE_SIZE_BYTES):
        self.budget_bytes = validate_positive_integer(
            budget_bytes, min_value=1, field_name="budget_bytes"
        )
        self.sample_size = validate_positive_integer(
            sample_size, min_value=1, field_name="sample_size"
        )
        self._samples: List[MemorySample] = []
        # append() runs on the sampling thread, flush() may also run on a host thread.
        self._lock = threading.Lock()

    def append(self, sample: MemorySample) -> None:
        with self._lock:
            self._samples.append(sample)

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def snapshot(self) -> List[MemorySample]:
        """Copy of the pending samples, oldest first."""
        with self._lock:
            return list(self._samples)

    def estimated_bytes(self) -> int:
        return len(self) * self.sample_size

    def exceeds_budget(self) -> bool:
        return self.estimated_bytes() > self.budget_bytes

    def flush(self, sink: SampleSink, resolve_name: NameResolver) -> int:
        """
        Write every pending sample to the sink, in append order, then clear.

        If the sink raises, the exception propagates and the buffer keeps all
        of its samples so a later flush can retry them.

        Args:
            sink: Destination for the samples
            resolve_name: Maps event ids to event names

        Returns:
            Number of samples written; 0 for an empty buffer.
        """
        with self._lock:
            if not self._samples:
                return 0
            written = sink.write_samples(self._samples, resolve_name)
            self._samples = []
        logger.debug(f"Flushed {written} samples")
        return written
