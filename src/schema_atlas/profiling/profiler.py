"""
Column profiler.

Fetches one sample batch per table and computes every column's statistics
from it in memory: cardinality, null percentage, numeric range, candidate
enum values and pattern tags. After a successful pass the table's sample
rotation advances so the next pass sees a different slice.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from schema_atlas.config import AtlasConfig
from schema_atlas.errors import ProfilingInProgressError, SampleFetchError, TableNotFoundError
from schema_atlas.models import ColumnRecord, ProfileResult, TableRecord, TypeFamily, is_numeric_type
from schema_atlas.profiling.patterns import PatternDetector, get_detectors
from schema_atlas.profiling.sampling import next_sample_config
from schema_atlas.storage.base import MetadataStore

if TYPE_CHECKING:
    from schema_atlas.sources.base import RowSampleSource

logger = logging.getLogger(__name__)


@dataclass
class ColumnStats:
    """Statistics of one column computed from one sample."""
    cardinality: int
    null_percentage: float
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    distinct_values: Optional[List[Any]] = None
    patterns: List[str] = field(default_factory=list)


def _plain(value: Any) -> Any:
    return value.item() if isinstance(value, np.generic) else value


def statistic_tags(
    cardinality: int,
    non_null_count: int,
    null_percentage: float,
    strings: Sequence[str] = (),
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
) -> List[str]:
    """Pattern tags derived from a column's statistics rather than its values."""
    tags = []

    if cardinality == 1:
        tags.append("constant")
    elif non_null_count > 1 and cardinality == non_null_count:
        tags.append("all-unique")

    if 0 < cardinality <= 10:
        tags.append("low-cardinality")
    elif 10 < cardinality <= 100:
        tags.append("medium-cardinality")

    if null_percentage > 80:
        tags.append("mostly-null")
    elif null_percentage > 50:
        tags.append("high-null")
    elif null_percentage == 0 and non_null_count > 0:
        tags.append("no-nulls")

    if strings:
        avg_length = sum(len(s) for s in strings) / len(strings)
        if avg_length < 10:
            tags.append("short-text")
        elif avg_length > 100:
            tags.append("long-text")

    if min_value is not None and max_value is not None and max_value > min_value:
        if cardinality / (max_value - min_value) < 0.1:
            tags.append("sparse-numeric")

    return tags


class ColumnProfiler:
    """
    Computes per-column statistics for cataloged tables.

    Only one profiling pass per table can run at a time through a given
    profiler; a concurrent request for the same table raises
    ProfilingInProgressError instead of racing on the column records.
    """

    def __init__(
        self,
        store: MetadataStore,
        source: RowSampleSource,
        config: Optional[AtlasConfig] = None,
        detectors: Optional[Sequence[PatternDetector]] = None,
    ):
        """
        Initialize profiler.

        Args:
            store: Metadata store holding table and column records
            source: Row sampling source for the tables' data
            config: Thresholds (defaults when omitted)
            detectors: Pattern detectors; resolved from config.pattern_detectors when omitted
        """
        self.store = store
        self.source = source
        self.config = config or AtlasConfig()
        self.detectors = list(detectors) if detectors is not None else get_detectors(
            self.config.pattern_detectors
        )

        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _table_lock(self, table_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(table_id, threading.Lock())

    def profile_table(self, table_id: str) -> ProfileResult:
        """
        Run one profiling pass over a table.

        Args:
            table_id: Id of a cataloged table

        Returns:
            ProfileResult describing the pass

        Raises:
            TableNotFoundError: If the table is not cataloged
            ProfilingInProgressError: If a pass over the table is already running
            SampleFetchError: If the sample batch cannot be fetched
        """
        table = self.store.get_table(table_id)
        if table is None:
            raise TableNotFoundError(table_id)

        lock = self._table_lock(table_id)
        if not lock.acquire(blocking=False):
            raise ProfilingInProgressError(table_id)

        try:
            return self._profile(table)
        finally:
            lock.release()

    def _profile(self, table: TableRecord) -> ProfileResult:
        sample = table.sample
        logger.info(
            f"Profiling {table.full_name} "
            f"({sample.strategy.value}, offset {sample.offset}, size {sample.size})"
        )

        try:
            rows = self.source.sample(
                table.name, table.schema, sample.strategy, sample.offset, sample.size
            )
        except Exception as e:
            raise SampleFetchError(table.full_name, str(e)) from e

        df = pd.DataFrame(rows)
        frame_columns = {str(c).lower(): c for c in df.columns}
        columns = self.store.get_columns(table.id)

        result = ProfileResult(
            table_id=table.id,
            table_name=table.name,
            sample_row_count=len(df),
            strategy=sample.strategy,
            offset=sample.offset,
            total_columns=len(columns),
        )

        updated: List[ColumnRecord] = []
        for column in columns:
            frame_column = frame_columns.get(column.name.lower())
            if frame_column is not None:
                series = df[frame_column]
            else:
                series = pd.Series([None] * len(df), dtype=object)

            try:
                stats = self.compute_column_stats(column, series)
            except Exception as e:
                logger.warning(f"Skipping column {table.name}.{column.name}: {e}")
                result.skipped_columns.append(column.name)
                continue

            updated.append(replace(
                column,
                cardinality=stats.cardinality,
                null_percentage=stats.null_percentage,
                min_value=stats.min_value,
                max_value=stats.max_value,
                distinct_values=stats.distinct_values,
                patterns=stats.patterns,
            ))
            self._categorize(result, column, stats)

        for column in updated:
            self.store.update_column(column)
        result.analyzed_columns = len(updated)

        table = replace(
            table,
            sample=next_sample_config(sample),
            samples_analyzed=table.samples_analyzed + 1,
            last_profiled_at=datetime.now().isoformat(),
        )
        self.store.update_table(table)

        logger.info(
            f"Profiled {table.full_name}: {result.analyzed_columns}/{result.total_columns} columns "
            f"from {result.sample_row_count} rows"
        )
        if result.skipped_columns:
            logger.warning(f"Skipped columns in {table.name}: {', '.join(result.skipped_columns)}")
        return result

    def compute_column_stats(self, column: ColumnRecord, series: pd.Series) -> ColumnStats:
        """Compute statistics for one column from its sampled values."""
        row_count = len(series)
        non_null = series.dropna()
        cardinality = int(non_null.nunique())
        null_percentage = (row_count - len(non_null)) / row_count * 100 if row_count else 0.0

        stats = ColumnStats(cardinality=cardinality, null_percentage=float(null_percentage))

        if is_numeric_type(column.data_type) and len(non_null):
            numeric = pd.to_numeric(non_null, errors="coerce").dropna()
            if len(numeric):
                stats.min_value = float(numeric.min())
                stats.max_value = float(numeric.max())

        distinct = non_null.unique()
        if cardinality <= self.config.max_enum_values:
            stats.distinct_values = [_plain(v) for v in distinct[: self.config.max_enum_values]]

        strings = [v for v in distinct if isinstance(v, str)]
        patterns = [d.name for d in self.detectors if strings and d.matches(strings)]
        patterns.extend(statistic_tags(
            cardinality,
            len(non_null),
            stats.null_percentage,
            strings=strings,
            min_value=stats.min_value,
            max_value=stats.max_value,
        ))
        stats.patterns = patterns
        return stats

    def _categorize(self, result: ProfileResult, column: ColumnRecord, stats: ColumnStats) -> None:
        low_cardinality = stats.cardinality <= self.config.max_enum_values
        if low_cardinality:
            result.low_cardinality_columns.append(column.name)
        if stats.null_percentage > self.config.high_null_threshold:
            result.high_null_columns.append(column.name)
        if is_numeric_type(column.data_type):
            result.numeric_columns.append(column.name)
        elif column.family == TypeFamily.TEXT.value and low_cardinality:
            result.categorical_columns.append(column.name)
