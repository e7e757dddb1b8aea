"""
Progress event stream for multi-table profiling runs.

The profiler itself knows nothing about progress. This module drives it
table by table and yields an event after each table, so callers can
render progress and cancel between tables simply by no longer iterating.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from schema_atlas.errors import AtlasError
from schema_atlas.models import ProfileResult
from schema_atlas.profiling.profiler import ColumnProfiler

logger = logging.getLogger(__name__)


@dataclass
class ProgressEvent:
    """Emitted after each unit of work."""
    completed: int
    total: int
    table_id: str
    table_name: str
    result: Optional[ProfileResult] = None
    error: Optional[str] = None

    @property
    def fraction(self) -> float:
        return self.completed / self.total if self.total else 1.0

    @property
    def ok(self) -> bool:
        return self.error is None


def profile_tables(
    profiler: ColumnProfiler,
    table_ids: Sequence[str],
    stop_on_error: bool = False,
) -> Iterator[ProgressEvent]:
    """
    Profile tables one at a time, yielding a ProgressEvent after each.

    Args:
        profiler: Profiler to drive
        table_ids: Tables to profile, in order
        stop_on_error: Re-raise the first table failure instead of reporting it

    Yields:
        ProgressEvent per table, failed tables carrying the error message
    """
    total = len(table_ids)
    for index, table_id in enumerate(table_ids, start=1):
        table = profiler.store.get_table(table_id)
        table_name = table.name if table else table_id

        try:
            result = profiler.profile_table(table_id)
        except AtlasError as e:
            if stop_on_error:
                raise
            logger.warning(f"Profiling failed for {table_name}: {e}")
            yield ProgressEvent(index, total, table_id, table_name, error=str(e))
            continue

        yield ProgressEvent(index, total, table_id, table_name, result=result)
