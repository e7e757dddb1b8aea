"""Abstract interfaces for row sampling and value-overlap measurement."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from schema_atlas.models import OverlapResult, SampleStrategy


class RowSampleSource(ABC):
    """Fetches one batch of rows from a source table."""

    @abstractmethod
    def sample(
        self,
        table: str,
        schema: Optional[str],
        strategy: SampleStrategy,
        offset: int,
        size: int,
    ) -> List[Dict[str, Any]]:
        """
        Return up to `size` rows keyed by column name.

        TOP returns the first rows in source order, BOTTOM the last rows,
        RANDOM a random selection that is reproducible for a given offset.
        """


class ValueOverlapOracle(ABC):
    """Measures how many distinct source values also occur in a target column."""

    @abstractmethod
    def overlap(
        self,
        table_a: str,
        column_a: str,
        table_b: str,
        column_b: str,
        schema: Optional[str] = None,
    ) -> OverlapResult:
        """Overlap of table_a.column_a's distinct values with table_b.column_b's."""


def overlap_of(source_values: set, target_values: set) -> OverlapResult:
    """Build an OverlapResult from two sets of distinct non-null values."""
    total = len(source_values)
    matching = len(source_values & target_values)
    percentage = (matching * 100.0 / total) if total else 0.0
    return OverlapResult(
        total_values=total,
        matching_values=matching,
        overlap_percentage=percentage,
    )
