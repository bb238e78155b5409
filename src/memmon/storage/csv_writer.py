"""
Semicolon-delimited text sink for memory samples.

Output format::

    time_ms;pid;VmPeak;VmRSS;event
    12;4711;251658240;10485760;""
    63;4711;251658240;10747904;"load"

`time_ms` is the number of whole milliseconds between the monitor's start
and the sample, plus one, so the first sample never reads 0. The event name
is always quoted; embedded quotes are doubled.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Optional, Sequence, Union

from ..models.sample import MemorySample
from ..validation import handle_file_error
from .base import NameResolver, SampleSink

logger = logging.getLogger(__name__)

CSV_SEPARATOR = ";"
CSV_COLUMNS = ["time_ms", "pid", "VmPeak", "VmRSS", "event"]
CSV_HEADER = CSV_SEPARATOR.join(CSV_COLUMNS) + "\n"


def elapsed_ms(timestamp_ns: int, start_ns: int) -> int:
    """Milliseconds between start and timestamp, rounded up by one."""
    return (timestamp_ns - start_ns) // 1_000_000 + 1


def quote_event(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class CsvSampleWriter(SampleSink):
    """
    Writes samples to a `;`-delimited text file.

    The file is opened (and truncated) on construction, so an unwritable
    destination fails immediately rather than on the first flush. It is
    opened unbuffered: every chunk goes straight to the operating system,
    and a chunk whose write fails is cut off the end of the file again, so
    a retry never duplicates the header or a line.

    Attributes:
        path: Output file path.
        start_ns: Monotonic reference instant that `time_ms` is relative to.
        lines_written: Number of data lines written so far (header excluded).
    """

    def __init__(self, path: Union[str, Path], start_ns: int):
        self.path = Path(path)
        self.start_ns = start_ns
        self.lines_written = 0
        self._header_written = False
        self._stream: Optional[BinaryIO] = open(self.path, "wb", buffering=0)
        logger.debug(f"Opened sample output file {self.path}")

    @property
    def closed(self) -> bool:
        return self._stream is None

    @property
    def header_written(self) -> bool:
        return self._header_written

    def format_line(self, sample: MemorySample, resolve_name: NameResolver) -> str:
        return CSV_SEPARATOR.join((
            str(elapsed_ms(sample.timestamp_ns, self.start_ns)),
            str(sample.pid),
            str(sample.vm_peak),
            str(sample.vm_rss),
            quote_event(resolve_name(sample.event_id)),
        )) + "\n"

    def write_samples(self, samples: Sequence[MemorySample], resolve_name: NameResolver) -> int:
        if not samples:
            return 0
        if self._stream is None:
            raise ValueError(f"Sample output file {self.path} is closed")

        # Build the whole chunk first so a formatting error writes nothing.
        chunk = "".join(self.format_line(sample, resolve_name) for sample in samples)
        if not self._header_written:
            chunk = CSV_HEADER + chunk

        offset = self._stream.tell()
        try:
            self._write_all(chunk.encode("utf-8"))
        except BaseException:
            self._rollback(offset)
            raise

        self._header_written = True
        self.lines_written += len(samples)
        logger.debug(f"Wrote {len(samples)} samples to {self.path}")
        return len(samples)

    def _write_all(self, data: bytes) -> None:
        # Raw writes may be partial.
        view = memoryview(data)
        while view:
            written = self._stream.write(view)
            view = view[written:]

    def _rollback(self, offset: int) -> None:
        try:
            self._stream.truncate(offset)
            self._stream.seek(offset)
        except OSError as e:
            handle_file_error(
                error=e,
                context=f"discarding partial chunk in {self.path}",
                reraise=False,
                logger=logger,
            )
            return
        logger.debug(f"Discarded partial chunk in {self.path} after byte {offset}")

    def close(self) -> None:
        if self._stream is None:
            return
        try:
            self._stream.close()
        finally:
            self._stream = None
            logger.debug(f"Closed sample output file {self.path} ({self.lines_written} lines)")
