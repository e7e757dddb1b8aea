"""
Schema Atlas - Column Profiling and Relationship Discovery

Catalogs an unfamiliar relational dataset: profiles columns statistically
from bounded row samples and infers foreign-key-like relationships between
tables that declare none.

Features:
- One sample batch per table per profiling pass, with sample rotation
- Pluggable value pattern detectors
- Name, type, value-overlap and cardinality based relationship scoring
- Incremental discovery bounded to new x existing tables
- Confidence-tiered persist / human review / discard policy
"""

__version__ = "0.1.0"

from schema_atlas.config import AtlasConfig
from schema_atlas.errors import (
    AtlasError,
    ConfigError,
    ProfilingInProgressError,
    SampleFetchError,
    TableNotFoundError,
)
from schema_atlas.models import (
    AmbiguityGroup,
    CandidateSource,
    ColumnRecord,
    DiscoveryResult,
    PersistedRelationship,
    ProfileResult,
    RelationshipCandidate,
    RelationshipType,
    ReviewRequest,
    SampleConfig,
    SampleStrategy,
    TableRecord,
)
from schema_atlas.storage import (
    InMemoryMetadataStore,
    InMemoryReviewQueue,
    MetadataStore,
    ReviewQueue,
)
from schema_atlas.sources import DataFrameSource, RowSampleSource, ValueOverlapOracle
from schema_atlas.profiling import ColumnProfiler
from schema_atlas.discovery import IncrementalDiscoveryOrchestrator, RelationshipScorer

__all__ = [
    # Configuration and errors
    "AtlasConfig",
    "AtlasError",
    "ConfigError",
    "ProfilingInProgressError",
    "SampleFetchError",
    "TableNotFoundError",
    # Models
    "AmbiguityGroup",
    "CandidateSource",
    "ColumnRecord",
    "DiscoveryResult",
    "PersistedRelationship",
    "ProfileResult",
    "RelationshipCandidate",
    "RelationshipType",
    "ReviewRequest",
    "SampleConfig",
    "SampleStrategy",
    "TableRecord",
    # Storage and sources
    "InMemoryMetadataStore",
    "InMemoryReviewQueue",
    "MetadataStore",
    "ReviewQueue",
    "DataFrameSource",
    "RowSampleSource",
    "ValueOverlapOracle",
    # Engine
    "ColumnProfiler",
    "RelationshipScorer",
    "IncrementalDiscoveryOrchestrator",
]
