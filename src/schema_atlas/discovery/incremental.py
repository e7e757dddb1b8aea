"""
Incremental relationship discovery.

When tables are added to an analysis, only the new tables are compared
against the tables already selected; new x new and existing x existing
pairs are left to a full pass. Declared catalog constraints are taken
first and treated as authoritative, heuristic candidates second, and every
candidate then goes through the confidence-tiered decision policy:

- confidence >= auto_persist_threshold: persisted
- review_threshold <= confidence < auto_persist_threshold: review request
- below review_threshold: skipped
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, List, Optional, Set, Tuple

from schema_atlas.config import AtlasConfig
from schema_atlas.discovery.scorer import RelationshipScorer, find_ambiguities, infer_relationship_type
from schema_atlas.models import (
    AmbiguityGroup,
    CandidateSource,
    DiscoveryResult,
    RelationshipCandidate,
    ReviewRequest,
    TableRecord,
)
from schema_atlas.storage.base import MetadataStore, ReviewQueue

logger = logging.getLogger(__name__)

ColumnPair = Tuple[str, str]


def persisted_candidates(store: MetadataStore, database_id: str) -> List[RelationshipCandidate]:
    """Persisted relationships of a database, re-expressed as named candidates."""
    candidates = []
    for rel in store.get_relationships(database_id):
        from_table = store.get_table(rel.from_table_id)
        to_table = store.get_table(rel.to_table_id)
        from_column = store.get_column(rel.from_column_id)
        to_column = store.get_column(rel.to_column_id)
        if not (from_table and to_table and from_column and to_column):
            logger.warning(f"Relationship {rel.id} refers to records that no longer exist")
            continue

        candidates.append(RelationshipCandidate(
            from_table_id=from_table.id,
            from_table=from_table.name,
            from_column_id=from_column.id,
            from_column=from_column.name,
            to_table_id=to_table.id,
            to_table=to_table.name,
            to_column_id=to_column.id,
            to_column=to_column.name,
            confidence=rel.confidence,
            source=rel.source,
            relationship_type=rel.relationship_type,
            reasoning=rel.reasoning,
        ))
    return candidates


class IncrementalDiscoveryOrchestrator:
    """Discovers relationships for newly added tables and disposes of the candidates."""

    def __init__(
        self,
        store: MetadataStore,
        scorer: RelationshipScorer,
        review_queue: ReviewQueue,
        config: Optional[AtlasConfig] = None,
    ):
        self.store = store
        self.scorer = scorer
        self.review_queue = review_queue
        self.config = config or scorer.config

    def discover(self, database_id: str, new_table_ids: Iterable[str]) -> DiscoveryResult:
        """
        Discover relationships between new tables and the existing selected tables.

        Args:
            database_id: Database the tables belong to
            new_table_ids: Ids of the newly introduced tables

        Returns:
            DiscoveryResult with every candidate and the decision counts
        """
        new_ids = list(dict.fromkeys(new_table_ids))
        new_tables = self._load_tables(new_ids)
        new_id_set = {t.id for t in new_tables}
        existing_tables = [
            t for t in self.store.get_selected_tables(database_id) if t.id not in new_id_set
        ]
        logger.info(
            f"Incremental discovery for {database_id}: "
            f"{len(new_tables)} new tables against {len(existing_tables)} existing tables"
        )

        # Step 1: declared constraints
        catalog = self.extract_catalog_candidates(list(new_id_set))
        logger.info(f"Found {len(catalog)} declared relationships")

        # Step 2: new x existing only
        heuristic = []
        for new_table in new_tables:
            for existing_table in existing_tables:
                heuristic.extend(self._score_pair(new_table, existing_table, catalog))
        logger.info(f"Found {len(heuristic)} heuristic candidates")

        # Step 3: decisions
        return self._decide(catalog + heuristic)

    def run_full_pass(self, database_id: str) -> DiscoveryResult:
        """Score every unordered pair of selected tables and apply the decision policy."""
        tables = self.store.get_selected_tables(database_id)
        logger.info(f"Full discovery pass for {database_id} over {len(tables)} tables")

        catalog = self.extract_catalog_candidates([t.id for t in tables])

        heuristic = []
        for i, table1 in enumerate(tables):
            for table2 in tables[i + 1:]:
                heuristic.extend(self._score_pair(table1, table2, catalog))
        logger.info(f"Found {len(catalog)} declared and {len(heuristic)} heuristic candidates")

        return self._decide(catalog + heuristic)

    def find_ambiguities(self, database_id: str) -> List[AmbiguityGroup]:
        """Group the database's persisted relationships by source column and report conflicts."""
        groups = find_ambiguities(persisted_candidates(self.store, database_id))
        logger.info(f"Found {len(groups)} ambiguous source columns in {database_id}")
        return groups

    def extract_catalog_candidates(self, table_ids: List[str]) -> List[RelationshipCandidate]:
        """Turn declared constraints of the given tables into confidence 1.0 candidates."""
        candidates = []
        for declared in self.store.list_declared_relationships(table_ids):
            from_table = self.store.get_table(declared.from_table_id)
            to_table = self.store.get_table(declared.to_table_id)
            from_column = self.store.get_column(declared.from_column_id)
            to_column = self.store.get_column(declared.to_column_id)
            if not (from_table and to_table and from_column and to_column):
                logger.warning(f"Declared relationship {declared.constraint_name} refers to unknown records")
                continue

            candidates.append(RelationshipCandidate(
                from_table_id=from_table.id,
                from_table=from_table.name,
                from_column_id=from_column.id,
                from_column=from_column.name,
                to_table_id=to_table.id,
                to_table=to_table.name,
                to_column_id=to_column.id,
                to_column=to_column.name,
                confidence=1.0,
                source=CandidateSource.CATALOG,
                relationship_type=infer_relationship_type(from_column.cardinality, to_column.cardinality),
                reasoning=f"Foreign key constraint: {declared.constraint_name}",
            ))
            logger.debug(f"Catalog relationship: {candidates[-1].label}")
        return candidates

    def _load_tables(self, table_ids: List[str]) -> List[TableRecord]:
        tables = []
        for table_id in table_ids:
            table = self.store.get_table(table_id)
            if table is None:
                logger.warning(f"Table not found, skipping: {table_id}")
                continue
            tables.append(table)
        return tables

    def _score_pair(
        self,
        table1: TableRecord,
        table2: TableRecord,
        catalog: List[RelationshipCandidate],
    ) -> List[RelationshipCandidate]:
        return self.scorer.score_tables(
            table1,
            self.store.get_columns(table1.id),
            table2,
            self.store.get_columns(table2.id),
            known_pairs=[c.pair for c in catalog],
        )

    def _is_known(self, pair: ColumnPair) -> bool:
        from_id, to_id = pair
        return (
            self.store.relationship_exists(from_id, to_id)
            or self.store.relationship_exists(to_id, from_id)
        )

    def _decide(self, candidates: List[RelationshipCandidate]) -> DiscoveryResult:
        result = DiscoveryResult(candidates=candidates)
        seen: Set[ColumnPair] = set()

        for candidate in candidates:
            try:
                outcome = self._dispose(candidate, seen)
            except Exception as e:
                logger.warning(f"Failed to process candidate {candidate.label}: {e}")
                outcome = "skipped"

            if outcome == "persisted":
                result.persisted_count += 1
            elif outcome == "review":
                result.review_request_count += 1
            else:
                result.skipped_count += 1

        logger.info(
            f"Discovery complete: {len(candidates)} candidates, "
            f"{result.persisted_count} persisted, {result.review_request_count} sent for review, "
            f"{result.skipped_count} skipped"
        )
        return result

    def _dispose(self, candidate: RelationshipCandidate, seen: Set[ColumnPair]) -> str:
        pair = candidate.pair
        if pair in seen or (pair[1], pair[0]) in seen:
            return "skipped"
        seen.add(pair)

        if self._is_known(pair):
            # A declared constraint confirms an earlier heuristic record
            if candidate.source == CandidateSource.CATALOG and self.store.mark_validated(*pair):
                logger.info(f"Validated existing relationship {candidate.label}: {candidate.reasoning}")
            return "skipped"

        if candidate.confidence >= self.config.auto_persist_threshold:
            record = self.store.create_relationship_if_absent(candidate)
            if record is None:
                return "skipped"
            logger.info(
                f"Persisted {candidate.label} "
                f"(confidence {candidate.confidence:.2f}, {candidate.source.value})"
            )
            return "persisted"

        if candidate.confidence >= self.config.review_threshold:
            request = ReviewRequest.from_candidate(candidate, uuid.uuid4().hex)
            if not self.review_queue.submit(request):
                return "skipped"
            logger.info(f"Review requested: {request.question_text}")
            return "review"

        return "skipped"
