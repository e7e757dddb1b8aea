"""
Sampling source and overlap oracle over pandas DataFrames.

Frames are usually loaded from a directory of CSV/Parquet sample files,
one file per table, named after the table.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from schema_atlas.models import OverlapResult, SampleStrategy, TableRecord
from schema_atlas.profiling.sampling import default_sample_size
from schema_atlas.sources.base import RowSampleSource, ValueOverlapOracle, overlap_of
from schema_atlas.storage.base import MetadataStore

logger = logging.getLogger(__name__)


def frame_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a frame to row dicts with None for missing values and plain Python scalars."""
    rows = df.astype(object).where(pd.notna(df), None).to_dict("records")
    for row in rows:
        for key, value in row.items():
            if isinstance(value, np.generic):
                row[key] = value.item()
    return rows


class DataFrameSource(RowSampleSource, ValueOverlapOracle):
    """
    Serves samples and overlap measurements from in-memory frames.

    Table names are matched case-insensitively. The schema argument of the
    source interfaces is accepted and ignored.
    """

    def __init__(
        self,
        frames: Dict[str, pd.DataFrame],
        declared_types: Optional[Dict[str, Dict[str, str]]] = None,
    ):
        self._frames = {name.lower(): df for name, df in frames.items()}
        self._file_types = {name.lower(): types for name, types in (declared_types or {}).items()}

    @classmethod
    def from_directory(cls, sample_dir: Path, tables: Optional[List[str]] = None) -> DataFrameSource:
        """
        Load sample files from a directory.

        Args:
            sample_dir: Directory containing <table>.csv / <table>.parquet files
            tables: Optional list of specific tables to load

        Returns:
            DataFrameSource over the loaded frames
        """
        sample_dir = Path(sample_dir)
        logger.info(f"Loading samples from {sample_dir}")

        parquet_files = {f.stem.lower(): f for f in sample_dir.glob("**/*.parquet")}
        csv_files = {f.stem.lower(): f for f in sample_dir.glob("**/*.csv")}
        all_files = {**csv_files, **parquet_files}  # Parquet takes precedence

        wanted = [t.lower() for t in tables] if tables else sorted(all_files)

        frames: Dict[str, pd.DataFrame] = {}
        file_types: Dict[str, Dict[str, str]] = {}
        for table_name in wanted:
            file_path = all_files.get(table_name)
            if file_path is None:
                logger.warning(f"No sample file found for table: {table_name}")
                continue

            if file_path.suffix == ".parquet":
                import pyarrow.parquet as pq

                pq_file = pq.ParquetFile(file_path)
                file_types[table_name] = {
                    f.name: _map_arrow_type(f.type) for f in pq_file.schema_arrow
                }
                frames[table_name] = pq_file.read().to_pandas()
            else:
                frames[table_name] = pd.read_csv(file_path)

        logger.info(f"Loaded samples for {len(frames)} tables")
        return cls(frames, declared_types=file_types)

    @property
    def table_names(self) -> List[str]:
        return list(self._frames)

    def frame(self, table: str) -> pd.DataFrame:
        try:
            return self._frames[table.lower()]
        except KeyError:
            raise KeyError(f"No frame loaded for table: {table}") from None

    def sample(
        self,
        table: str,
        schema: Optional[str],
        strategy: SampleStrategy,
        offset: int,
        size: int,
    ) -> List[Dict[str, Any]]:
        df = self.frame(table)

        if strategy == SampleStrategy.TOP:
            batch = df.iloc[offset:offset + size]
        elif strategy == SampleStrategy.BOTTOM:
            end = len(df) - offset
            batch = df.iloc[max(end - size, 0):max(end, 0)]
        else:
            batch = df.sample(n=min(size, len(df)), random_state=offset)

        return frame_to_rows(batch)

    def overlap(
        self,
        table_a: str,
        column_a: str,
        table_b: str,
        column_b: str,
        schema: Optional[str] = None,
    ) -> OverlapResult:
        source_values = set(self.frame(table_a)[column_a].dropna().unique().tolist())
        target_values = set(self.frame(table_b)[column_b].dropna().unique().tolist())
        return overlap_of(source_values, target_values)

    def register_tables(
        self,
        store: MetadataStore,
        database_id: str,
        schema: str = "public",
        tables: Optional[List[str]] = None,
        select: bool = True,
    ) -> List[TableRecord]:
        """
        Create table and column records for the loaded frames.

        Declared types come from the Parquet schema when available and from
        the pandas dtype otherwise.
        """
        wanted = {t.lower() for t in tables} if tables is not None else None
        created = []
        for table_name, df in self._frames.items():
            if wanted is not None and table_name not in wanted:
                continue

            row_count = len(df)
            table = store.create_table(
                database_id=database_id,
                name=table_name,
                schema=schema,
                row_count=row_count,
                column_count=len(df.columns),
                is_selected=select,
                sample_size=default_sample_size(row_count),
            )

            arrow_types = self._file_types.get(table_name, {})
            for col_name in df.columns:
                series = df[col_name]
                non_null = series.dropna()
                store.create_column(
                    table_id=table.id,
                    name=str(col_name),
                    data_type=arrow_types.get(col_name) or _map_series_type(series),
                    is_nullable=bool(series.isna().any()),
                    is_unique=bool(len(non_null) > 0 and non_null.is_unique),
                )

            created.append(table)
            logger.info(f"Registered {table_name} ({row_count} rows, {len(df.columns)} columns)")

        return created


def _map_pandas_type(dtype) -> str:
    """Map pandas dtype to a declared SQL type name."""
    dtype_str = str(dtype).lower()

    if "int" in dtype_str:
        return "bigint"
    elif "float" in dtype_str:
        return "double precision"
    elif "datetime" in dtype_str:
        return "timestamp"
    elif "bool" in dtype_str:
        return "boolean"
    elif dtype_str == "str" or "object" in dtype_str or "string" in dtype_str or "category" in dtype_str:
        return "varchar"
    else:
        return dtype_str


def _map_series_type(series: pd.Series) -> str:
    """
    Map a loaded column to a declared SQL type name.

    CSV integer columns with missing cells load as float64; they are
    declared as integers when every non-null value is whole.
    """
    if pd.api.types.is_float_dtype(series.dtype) and series.isna().any():
        non_null = series.dropna()
        if len(non_null) and (non_null % 1 == 0).all():
            return "bigint"
    return _map_pandas_type(series.dtype)


def _map_arrow_type(arrow_type) -> str:
    """Map Arrow type to a declared SQL type name."""
    import pyarrow as pa

    if pa.types.is_string(arrow_type) or pa.types.is_large_string(arrow_type):
        return "varchar"
    elif pa.types.is_int32(arrow_type) or pa.types.is_int16(arrow_type) or pa.types.is_int8(arrow_type):
        return "integer"
    elif pa.types.is_int64(arrow_type):
        return "bigint"
    elif pa.types.is_decimal(arrow_type):
        return "numeric"
    elif pa.types.is_float32(arrow_type):
        return "real"
    elif pa.types.is_float64(arrow_type):
        return "double precision"
    elif pa.types.is_date(arrow_type):
        return "date"
    elif pa.types.is_timestamp(arrow_type):
        return "timestamp"
    elif pa.types.is_boolean(arrow_type):
        return "boolean"
    elif pa.types.is_binary(arrow_type):
        return "bytea"
    else:
        return str(arrow_type)
