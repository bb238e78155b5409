"""
Loading of sample output files for analysis.
"""

import logging
from pathlib import Path
from typing import Union

import polars as pl

from .csv_writer import CSV_COLUMNS, CSV_SEPARATOR

logger = logging.getLogger(__name__)

SAMPLE_SCHEMA = {
    "time_ms": pl.Int64,
    "pid": pl.Int64,
    "VmPeak": pl.Int64,
    "VmRSS": pl.Int64,
    "event": pl.Utf8,
}


def load_samples(path: Union[str, Path]) -> pl.DataFrame:
    """
    Load a sample output file into a Polars DataFrame.

    Args:
        path: Output file written by a MemMonitor

    Returns:
        DataFrame with columns time_ms, pid, VmPeak, VmRSS and event. Samples
        captured before any event was declared have an empty event string.
        A file that never received a flush yields an empty DataFrame.
    """
    path = Path(path)
    if path.stat().st_size == 0:
        logger.debug(f"{path} is empty")
        return pl.DataFrame(schema=SAMPLE_SCHEMA)

    try:
        df = pl.read_csv(
            path,
            separator=CSV_SEPARATOR,
            quote_char='"',
            schema_overrides=SAMPLE_SCHEMA,
        )
    except Exception as e:
        logger.error(f"Failed to load samples from {path}: {e}")
        raise

    df = df.select(CSV_COLUMNS).with_columns(pl.col("event").fill_null(""))
    logger.debug(f"Loaded {len(df)} samples from {path}")
    return df
