"""
Relationship scoring between two profiled tables.

Every column pair goes through a type gate and a name-similarity gate;
only the survivors get the expensive value-overlap measurement, after
which a composite confidence, a relationship type and a reasoning string
are assembled.
"""

from __future__ import annotations

import concurrent.futures
import logging
from collections import OrderedDict
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Set, Tuple

from schema_atlas.config import AtlasConfig
from schema_atlas.discovery.similarity import name_similarity
from schema_atlas.models import (
    AmbiguityConflict,
    AmbiguityGroup,
    CandidateSource,
    ColumnRecord,
    OverlapResult,
    RelationshipCandidate,
    RelationshipType,
    TableRecord,
)

if TYPE_CHECKING:
    from schema_atlas.sources.base import ValueOverlapOracle

logger = logging.getLogger(__name__)

ColumnPair = Tuple[str, str]


def infer_relationship_type(
    cardinality1: Optional[int],
    cardinality2: Optional[int],
) -> RelationshipType:
    """
    Classify a relationship from the ratio of its columns' cardinalities.

    Ratios within [0.8, 1.2] are one-to-one, ratios above 2 or below 0.5
    one-to-many, anything else many-to-many. Unprofiled (or empty) columns
    default to one-to-many.
    """
    if not cardinality1 or not cardinality2:
        return RelationshipType.ONE_TO_MANY

    ratio = cardinality1 / cardinality2
    if 0.8 <= ratio <= 1.2:
        return RelationshipType.ONE_TO_ONE
    if ratio > 2 or ratio < 0.5:
        return RelationshipType.ONE_TO_MANY
    return RelationshipType.MANY_TO_MANY


def join_confidence(
    similarity: float,
    overlap_percentage: float,
    column1: ColumnRecord,
    column2: ColumnRecord,
) -> float:
    """Composite confidence of a column pair, capped at 1.0."""
    confidence = similarity * 0.4
    confidence += (overlap_percentage / 100) * 0.3

    names = (column1.name.lower(), column2.name.lower())
    if any(name.endswith("_id") for name in names):
        confidence += 0.1
    if "id" in names:
        confidence += 0.1

    if column1.cardinality and column2.cardinality:
        ratio = min(column1.cardinality, column2.cardinality) / max(column1.cardinality, column2.cardinality)
        confidence += ratio * 0.1

    # Components are tenths; rounding keeps a full score at exactly 1.0
    return min(round(confidence, 6), 1.0)


def build_reasoning(
    similarity: float,
    overlap_percentage: float,
    column1: ColumnRecord,
    column2: ColumnRecord,
) -> str:
    """Human-readable list of the signals that fired for a pair."""
    reasons = []

    if similarity >= 0.9:
        reasons.append("Very high name similarity")
    elif similarity >= 0.7:
        reasons.append("High name similarity")

    if overlap_percentage >= 80:
        reasons.append(f"{overlap_percentage:.1f}% value overlap")
    elif overlap_percentage >= 50:
        reasons.append(f"Moderate value overlap ({overlap_percentage:.1f}%)")

    names = (column1.name.lower(), column2.name.lower())
    if any(name.endswith("_id") for name in names):
        reasons.append("Foreign key naming pattern")
    if "id" in names:
        reasons.append("Primary key relationship")

    return ", ".join(reasons)


def _points_backwards(column1: ColumnRecord, column2: ColumnRecord) -> bool:
    """True if column1 looks like the referenced key and column2 like the reference."""
    name1, name2 = column1.name.lower(), column2.name.lower()
    if name1 == "id" and name2 != "id":
        return True
    if name2 == "id":
        return False
    return column1.is_unique and not column2.is_unique


class RelationshipScorer:
    """
    Scores column pairs of two tables as join candidates.

    Value overlap is measured only for pairs that pass the type and name
    gates, one query at a time unless config.overlap_workers allows a small
    bounded pool.
    """

    def __init__(self, overlap_oracle: ValueOverlapOracle, config: Optional[AtlasConfig] = None):
        self.overlap_oracle = overlap_oracle
        self.config = config or AtlasConfig()

    def score_tables(
        self,
        table1: TableRecord,
        columns1: List[ColumnRecord],
        table2: TableRecord,
        columns2: List[ColumnRecord],
        known_pairs: Iterable[ColumnPair] = (),
    ) -> List[RelationshipCandidate]:
        """
        Produce join candidates between two tables, best first.

        Args:
            table1: First table
            columns1: Columns of the first table
            table2: Second table
            columns2: Columns of the second table
            known_pairs: (from_column_id, to_column_id) pairs already known;
                skipped in either direction

        Returns:
            Candidates sorted by descending confidence
        """
        known: Set[ColumnPair] = set(known_pairs)
        survivors = []

        for col1 in columns1:
            for col2 in columns2:
                if (col1.id, col2.id) in known or (col2.id, col1.id) in known:
                    continue

                # Type gate
                if col1.family != col2.family:
                    continue

                similarity = name_similarity(table1.name, col1.name, table2.name, col2.name)
                if similarity < self.config.name_similarity_threshold:
                    continue

                if _points_backwards(col1, col2):
                    survivors.append((table2, col2, table1, col1, similarity))
                else:
                    survivors.append((table1, col1, table2, col2, similarity))

        logger.debug(
            f"{table1.name} x {table2.name}: {len(survivors)} of "
            f"{len(columns1) * len(columns2)} column pairs passed type and name gates"
        )

        overlaps = self._measure_overlaps(survivors)

        candidates = []
        for index, (from_table, from_col, to_table, to_col, similarity) in enumerate(survivors):
            overlap = overlaps.get(index)
            if overlap is None:
                continue

            pct = overlap.overlap_percentage
            candidates.append(RelationshipCandidate(
                from_table_id=from_table.id,
                from_table=from_table.name,
                from_column_id=from_col.id,
                from_column=from_col.name,
                to_table_id=to_table.id,
                to_table=to_table.name,
                to_column_id=to_col.id,
                to_column=to_col.name,
                confidence=join_confidence(similarity, pct, from_col, to_col),
                source=CandidateSource.HEURISTIC,
                relationship_type=infer_relationship_type(from_col.cardinality, to_col.cardinality),
                reasoning=build_reasoning(similarity, pct, from_col, to_col),
                name_similarity=similarity,
                overlap_percentage=pct,
            ))

        candidates.sort(key=lambda c: c.confidence, reverse=True)
        return candidates

    def _measure_overlaps(self, survivors: list) -> Dict[int, OverlapResult]:
        """Overlap per survivor index; failed measurements are logged and left out."""

        def _measure(index: int) -> Optional[OverlapResult]:
            from_table, from_col, to_table, to_col, _ = survivors[index]
            try:
                return self.overlap_oracle.overlap(
                    from_table.name, from_col.name, to_table.name, to_col.name,
                    schema=from_table.schema,
                )
            except Exception as e:
                logger.warning(
                    f"Overlap query failed for {from_table.name}.{from_col.name} -> "
                    f"{to_table.name}.{to_col.name}: {e}"
                )
                return None

        results: Dict[int, OverlapResult] = {}
        workers = min(self.config.overlap_workers, len(survivors))

        if workers <= 1:
            for index in range(len(survivors)):
                overlap = _measure(index)
                if overlap is not None:
                    results[index] = overlap
            return results

        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {
                executor.submit(_measure, index): index
                for index in range(len(survivors))
            }
            for future in concurrent.futures.as_completed(future_to_index):
                overlap = future.result()
                if overlap is not None:
                    results[future_to_index[future]] = overlap
        return results


def find_ambiguities(candidates: Iterable[RelationshipCandidate]) -> List[AmbiguityGroup]:
    """
    Report source columns that point at more than one distinct target.

    Conflicts are listed once per target column (highest confidence kept)
    in descending confidence order. Nothing is resolved here.
    """
    groups: Dict[str, AmbiguityGroup] = OrderedDict()
    targets: Dict[str, Dict[str, AmbiguityConflict]] = {}

    for candidate in candidates:
        group = groups.get(candidate.from_column_id)
        if group is None:
            group = AmbiguityGroup(
                source_column_id=candidate.from_column_id,
                table_name=candidate.from_table,
                column_name=candidate.from_column,
            )
            groups[candidate.from_column_id] = group
            targets[candidate.from_column_id] = {}

        by_target = targets[candidate.from_column_id]
        existing = by_target.get(candidate.to_column_id)
        if existing is None or candidate.confidence > existing.confidence:
            by_target[candidate.to_column_id] = AmbiguityConflict(
                target_table=candidate.to_table,
                target_column=candidate.to_column,
                target_column_id=candidate.to_column_id,
                confidence=candidate.confidence,
            )

    ambiguous = []
    for column_id, group in groups.items():
        conflicts = sorted(targets[column_id].values(), key=lambda c: c.confidence, reverse=True)
        if len(conflicts) >= 2:
            group.conflicts = conflicts
            ambiguous.append(group)
    return ambiguous
