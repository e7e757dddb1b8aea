"""Utility modules for schema_atlas."""

from schema_atlas.utils.summary import SummaryReporter, summarize_database

__all__ = ["SummaryReporter", "summarize_database"]
