"""
Row sampling sources and value-overlap oracles.

OracleSource needs the optional oracledb dependency and is imported from
schema_atlas.sources.oracle directly.
"""

from schema_atlas.sources.base import RowSampleSource, ValueOverlapOracle, overlap_of
from schema_atlas.sources.frames import DataFrameSource, frame_to_rows
from schema_atlas.sources.declared import load_relationships_file, register_declared_relationships

__all__ = [
    "RowSampleSource",
    "ValueOverlapOracle",
    "overlap_of",
    "DataFrameSource",
    "frame_to_rows",
    "load_relationships_file",
    "register_declared_relationships",
]
