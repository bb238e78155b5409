"""
Storage of monitoring data.

This module provides the sink that persists buffered samples as
semicolon-delimited text, and a Polars-based reader that loads those files
back for analysis.
"""

from .base import NameResolver, SampleSink
from .csv_writer import CSV_COLUMNS, CSV_HEADER, CSV_SEPARATOR, CsvSampleWriter, elapsed_ms
from .reader import load_samples

__all__ = [
    "NameResolver",
    "SampleSink",
    "CSV_COLUMNS",
    "CSV_HEADER",
    "CSV_SEPARATOR",
    "CsvSampleWriter",
    "elapsed_ms",
    "load_samples",
]
