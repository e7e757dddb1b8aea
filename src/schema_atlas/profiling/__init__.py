"""
Statistical profiling of sampled table data.

Usage:
    from schema_atlas.profiling import ColumnProfiler

    profiler = ColumnProfiler(store, source)
    result = profiler.profile_table(table_id)
"""

from schema_atlas.profiling.sampling import default_sample_size, next_sample_config
from schema_atlas.profiling.patterns import (
    PatternDetector,
    PredicateDetector,
    RegexDetector,
    available_detectors,
    get_detectors,
    register_detector,
)
from schema_atlas.profiling.profiler import ColumnProfiler, ColumnStats, statistic_tags

__all__ = [
    "ColumnProfiler",
    "ColumnStats",
    "statistic_tags",
    "default_sample_size",
    "next_sample_config",
    "PatternDetector",
    "PredicateDetector",
    "RegexDetector",
    "available_detectors",
    "get_detectors",
    "register_detector",
]
