"""
Sample sizing and sample rotation policy.

Successive profiling passes over a table look at different slices of it:
the first rows, then the last rows, then reproducible random draws with a
growing offset.
"""

from __future__ import annotations

from typing import Optional

from schema_atlas.models import SampleConfig, SampleStrategy


def default_sample_size(row_count: Optional[int], fallback: int = 1000) -> int:
    """
    Pick a sample size appropriate for a table's row count.

    Args:
        row_count: Number of rows in the table (None when unknown)
        fallback: Size used for small tables and unknown row counts

    Returns:
        Number of rows to sample per profiling pass
    """
    if row_count is None:
        return fallback
    if row_count > 1_000_000:
        return 10_000
    if row_count > 100_000:
        return 5_000
    if row_count > 10_000:
        return 1_000
    return max(min(row_count, fallback), 1)


def next_sample_config(current: SampleConfig) -> SampleConfig:
    """Return the sample configuration for the pass after `current`."""
    if current.strategy == SampleStrategy.TOP:
        return SampleConfig(strategy=SampleStrategy.BOTTOM, offset=0, size=current.size)
    if current.strategy == SampleStrategy.BOTTOM:
        return SampleConfig(strategy=SampleStrategy.RANDOM, offset=1, size=current.size)
    return SampleConfig(strategy=SampleStrategy.RANDOM, offset=current.offset + 1, size=current.size)
