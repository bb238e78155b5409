"""
Abstract base class for sample sinks.

A sink receives batches of samples from the sample buffer and persists them.
The buffer only clears its samples after `write_samples` returns, so a sink
must either persist the whole batch or raise.
"""

from abc import ABC, abstractmethod
from typing import Callable, Sequence

from ..models.sample import MemorySample

# Maps an event id to the event name recorded with the sample.
NameResolver = Callable[[int], str]


class SampleSink(ABC):
    """Abstract base class for sample sink implementations."""

    @abstractmethod
    def write_samples(self, samples: Sequence[MemorySample], resolve_name: NameResolver) -> int:
        """
        Persist a batch of samples, in order.

        Args:
            samples: Samples to write, oldest first
            resolve_name: Callable mapping a sample's event id to its name

        Returns:
            Number of data lines written
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resource. Safe to call more than once."""
        pass

    @property
    @abstractmethod
    def closed(self) -> bool:
        """True once close() has been called."""
        pass
