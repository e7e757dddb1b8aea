"""
Storage interfaces and in-process implementations.

The profiler and the discovery orchestrator read and write exclusively
through MetadataStore and ReviewQueue.
"""

from schema_atlas.storage.base import MetadataStore, ReviewQueue
from schema_atlas.storage.memory import InMemoryMetadataStore, InMemoryReviewQueue

__all__ = [
    "MetadataStore",
    "ReviewQueue",
    "InMemoryMetadataStore",
    "InMemoryReviewQueue",
]
