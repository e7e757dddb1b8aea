"""
Exception hierarchy for schema_atlas.

Only failures that abort an operation are raised through these types;
per-column and per-candidate failures are logged and counted instead.
"""

from __future__ import annotations


class AtlasError(Exception):
    """Base class for all schema_atlas errors."""


class ConfigError(AtlasError):
    """Invalid configuration values or configuration file."""


class TableNotFoundError(AtlasError):
    """A table id is not known to the metadata store."""

    def __init__(self, table_id: str):
        super().__init__(f"Table not found: {table_id}")
        self.table_id = table_id


class SampleFetchError(AtlasError):
    """The row sample for a table could not be fetched."""

    def __init__(self, table_name: str, reason: str = ""):
        message = f"Could not fetch sample rows for {table_name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.table_name = table_name


class ProfilingInProgressError(AtlasError):
    """Another profiling pass over the same table has not finished yet."""

    def __init__(self, table_id: str):
        super().__init__(f"Table {table_id} is already being profiled")
        self.table_id = table_id
