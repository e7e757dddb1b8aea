"""
Relationship discovery between profiled tables.

Usage:
    from schema_atlas.discovery import IncrementalDiscoveryOrchestrator, RelationshipScorer

    scorer = RelationshipScorer(source, config)
    orchestrator = IncrementalDiscoveryOrchestrator(store, scorer, review_queue, config)
    result = orchestrator.discover(database_id, new_table_ids)
"""

from schema_atlas.discovery.similarity import fuzzy_similarity, levenshtein, name_similarity
from schema_atlas.discovery.scorer import (
    RelationshipScorer,
    build_reasoning,
    find_ambiguities,
    infer_relationship_type,
    join_confidence,
)
from schema_atlas.discovery.incremental import IncrementalDiscoveryOrchestrator, persisted_candidates

__all__ = [
    "IncrementalDiscoveryOrchestrator",
    "RelationshipScorer",
    "build_reasoning",
    "find_ambiguities",
    "fuzzy_similarity",
    "infer_relationship_type",
    "join_confidence",
    "levenshtein",
    "name_similarity",
    "persisted_candidates",
]
