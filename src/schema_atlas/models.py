"""
Core data models for the schema_atlas package.

Defines the catalog records (tables, columns), the transient relationship
candidates produced by scoring, and the records the discovery orchestrator
writes out (persisted relationships, review requests, ambiguity groups).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class SampleStrategy(str, Enum):
    """Row-sampling strategies understood by every sampling source."""
    TOP = "top"         # First N rows in source order (most recent when ordered)
    BOTTOM = "bottom"   # Last N rows in source order (oldest when ordered)
    RANDOM = "random"   # N random rows, offset used as reproducible seed


class CandidateSource(str, Enum):
    """Where a relationship candidate came from."""
    CATALOG = "catalog"       # Declared constraint in the source system
    HEURISTIC = "heuristic"   # Scored from names, types and values


class RelationshipType(str, Enum):
    """Cardinality class of a relationship."""
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_MANY = "many-to-many"


class TypeFamily(str, Enum):
    """Normalized type families used to gate join candidates."""
    TEXT = "text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    TEMPORAL = "temporal"
    BOOLEAN = "boolean"
    BINARY = "binary"


_ORACLE_NUMBER = re.compile(r"^number\s*\(\s*(\d+)\s*(?:,\s*(-?\d+)\s*)?\)$")


def type_family(declared_type: str) -> str:
    """
    Normalize a declared column type into its family name.

    Types that fall in no known family are returned lower-cased, so two
    identical exotic types still compare equal.
    """
    lower = (declared_type or "").strip().lower()

    if lower.startswith("bool"):
        return TypeFamily.BOOLEAN.value
    if any(hint in lower for hint in ("date", "time", "interval")):
        return TypeFamily.TEMPORAL.value
    if lower == "str" or any(hint in lower for hint in ("char", "text", "string", "clob", "enum")):
        return TypeFamily.TEXT.value

    match = _ORACLE_NUMBER.match(lower)
    if match:
        scale = match.group(2)
        return TypeFamily.INTEGER.value if scale in (None, "0") else TypeFamily.DECIMAL.value

    if ("int" in lower and "point" not in lower) or "serial" in lower:
        return TypeFamily.INTEGER.value
    if any(hint in lower for hint in ("decimal", "numeric", "number", "real", "double", "float", "money")):
        return TypeFamily.DECIMAL.value
    if any(hint in lower for hint in ("binary", "blob", "bytea", "raw")):
        return TypeFamily.BINARY.value
    return lower


def is_numeric_type(declared_type: str) -> bool:
    """True for integer- and decimal-family types."""
    return type_family(declared_type) in (TypeFamily.INTEGER.value, TypeFamily.DECIMAL.value)


def is_text_type(declared_type: str) -> bool:
    """True for text-family types."""
    return type_family(declared_type) == TypeFamily.TEXT.value


def _now() -> str:
    return datetime.now().isoformat()


@dataclass
class SampleConfig:
    """Where the next profiling pass of a table samples from."""
    strategy: SampleStrategy = SampleStrategy.TOP
    offset: int = 0
    size: int = 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "offset": self.offset,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SampleConfig:
        return cls(
            strategy=SampleStrategy(data.get("strategy", "top")),
            offset=data.get("offset", 0),
            size=data.get("size", 1000),
        )


@dataclass
class TableRecord:
    """A cataloged source table and its sample rotation state."""
    id: str
    database_id: str
    name: str
    schema: str = "public"
    row_count: Optional[int] = None
    column_count: Optional[int] = None
    is_selected: bool = False
    sample: SampleConfig = field(default_factory=SampleConfig)
    samples_analyzed: int = 0
    last_profiled_at: Optional[str] = None

    @property
    def full_name(self) -> str:
        """Return schema-qualified table name."""
        return f"{self.schema}.{self.name}" if self.schema else self.name

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "database_id": self.database_id,
            "name": self.name,
            "schema": self.schema,
            "row_count": self.row_count,
            "column_count": self.column_count,
            "is_selected": self.is_selected,
            "sample": self.sample.to_dict(),
            "samples_analyzed": self.samples_analyzed,
            "last_profiled_at": self.last_profiled_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TableRecord:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            database_id=data["database_id"],
            name=data["name"],
            schema=data.get("schema", "public"),
            row_count=data.get("row_count"),
            column_count=data.get("column_count"),
            is_selected=data.get("is_selected", False),
            sample=SampleConfig.from_dict(data.get("sample", {})),
            samples_analyzed=data.get("samples_analyzed", 0),
            last_profiled_at=data.get("last_profiled_at"),
        )


@dataclass
class ColumnRecord:
    """A column of a cataloged table and its latest sample statistics."""
    id: str
    table_id: str
    name: str
    data_type: str
    is_nullable: bool = True
    is_unique: bool = False

    # Recomputed wholesale on every profiling pass
    cardinality: Optional[int] = None
    null_percentage: Optional[float] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    distinct_values: Optional[List[Any]] = None
    patterns: List[str] = field(default_factory=list)

    @property
    def family(self) -> str:
        return type_family(self.data_type)

    @property
    def is_profiled(self) -> bool:
        return self.cardinality is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "table_id": self.table_id,
            "name": self.name,
            "data_type": self.data_type,
            "is_nullable": self.is_nullable,
            "is_unique": self.is_unique,
            "cardinality": self.cardinality,
            "null_percentage": self.null_percentage,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "distinct_values": self.distinct_values,
            "patterns": self.patterns,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ColumnRecord:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            table_id=data["table_id"],
            name=data["name"],
            data_type=data["data_type"],
            is_nullable=data.get("is_nullable", True),
            is_unique=data.get("is_unique", False),
            cardinality=data.get("cardinality"),
            null_percentage=data.get("null_percentage"),
            min_value=data.get("min_value"),
            max_value=data.get("max_value"),
            distinct_values=data.get("distinct_values"),
            patterns=data.get("patterns", []),
        )


@dataclass
class DeclaredRelationship:
    """A foreign key constraint declared in the source system's catalog."""
    constraint_name: str
    from_table_id: str
    from_column_id: str
    to_table_id: str
    to_column_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "constraint_name": self.constraint_name,
            "from_table_id": self.from_table_id,
            "from_column_id": self.from_column_id,
            "to_table_id": self.to_table_id,
            "to_column_id": self.to_column_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DeclaredRelationship:
        return cls(**{k: data[k] for k in (
            "constraint_name", "from_table_id", "from_column_id", "to_table_id", "to_column_id",
        )})


@dataclass
class OverlapResult:
    """Distinct-value overlap of a source column against a target column."""
    total_values: int
    matching_values: int
    overlap_percentage: float


@dataclass
class RelationshipCandidate:
    """A proposed, not yet persisted, relationship between two columns."""
    from_table_id: str
    from_table: str
    from_column_id: str
    from_column: str
    to_table_id: str
    to_table: str
    to_column_id: str
    to_column: str
    confidence: float
    source: CandidateSource = CandidateSource.HEURISTIC
    relationship_type: RelationshipType = RelationshipType.ONE_TO_MANY
    reasoning: str = ""
    name_similarity: Optional[float] = None
    overlap_percentage: Optional[float] = None

    @property
    def pair(self) -> Tuple[str, str]:
        """(from_column_id, to_column_id) identity of the candidate."""
        return (self.from_column_id, self.to_column_id)

    @property
    def label(self) -> str:
        return f"{self.from_table}.{self.from_column} -> {self.to_table}.{self.to_column}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "from_table_id": self.from_table_id,
            "from_table": self.from_table,
            "from_column_id": self.from_column_id,
            "from_column": self.from_column,
            "to_table_id": self.to_table_id,
            "to_table": self.to_table,
            "to_column_id": self.to_column_id,
            "to_column": self.to_column,
            "confidence": self.confidence,
            "source": self.source.value,
            "relationship_type": self.relationship_type.value,
            "reasoning": self.reasoning,
            "name_similarity": self.name_similarity,
            "overlap_percentage": self.overlap_percentage,
        }


@dataclass
class PersistedRelationship:
    """A relationship written through to the metadata store."""
    id: str
    from_table_id: str
    from_column_id: str
    to_table_id: str
    to_column_id: str
    confidence: float
    source: CandidateSource
    relationship_type: RelationshipType = RelationshipType.ONE_TO_MANY
    is_validated: bool = False
    reasoning: str = ""
    created_at: str = field(default_factory=_now)

    @property
    def pair(self) -> Tuple[str, str]:
        return (self.from_column_id, self.to_column_id)

    @classmethod
    def from_candidate(cls, candidate: RelationshipCandidate, record_id: str) -> PersistedRelationship:
        """Build the persisted form of a candidate; only catalog candidates are pre-validated."""
        return cls(
            id=record_id,
            from_table_id=candidate.from_table_id,
            from_column_id=candidate.from_column_id,
            to_table_id=candidate.to_table_id,
            to_column_id=candidate.to_column_id,
            confidence=candidate.confidence,
            source=candidate.source,
            relationship_type=candidate.relationship_type,
            is_validated=candidate.source == CandidateSource.CATALOG,
            reasoning=candidate.reasoning,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "from_table_id": self.from_table_id,
            "from_column_id": self.from_column_id,
            "to_table_id": self.to_table_id,
            "to_column_id": self.to_column_id,
            "confidence": self.confidence,
            "source": self.source.value,
            "relationship_type": self.relationship_type.value,
            "is_validated": self.is_validated,
            "reasoning": self.reasoning,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PersistedRelationship:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            from_table_id=data["from_table_id"],
            from_column_id=data["from_column_id"],
            to_table_id=data["to_table_id"],
            to_column_id=data["to_column_id"],
            confidence=float(data["confidence"]),
            source=CandidateSource(data.get("source", "heuristic")),
            relationship_type=RelationshipType(data.get("relationship_type", "one-to-many")),
            is_validated=data.get("is_validated", False),
            reasoning=data.get("reasoning", ""),
            created_at=data.get("created_at", ""),
        )


@dataclass
class AmbiguityConflict:
    """One of the competing targets of an ambiguous source column."""
    target_table: str
    target_column: str
    target_column_id: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_table": self.target_table,
            "target_column": self.target_column,
            "target_column_id": self.target_column_id,
            "confidence": self.confidence,
        }


@dataclass
class AmbiguityGroup:
    """A source column that points at two or more distinct targets."""
    source_column_id: str
    table_name: str
    column_name: str
    conflicts: List[AmbiguityConflict] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_column_id": self.source_column_id,
            "table_name": self.table_name,
            "column_name": self.column_name,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class ReviewRequest:
    """
    A medium-confidence candidate handed to a human.

    Carries the full candidate payload so the decision can be made without
    re-running discovery.
    """
    id: str
    from_table: str
    from_column: str
    to_table: str
    to_column: str
    confidence: float
    source: CandidateSource
    reasoning: str = ""
    from_table_id: Optional[str] = None
    from_column_id: Optional[str] = None
    to_table_id: Optional[str] = None
    to_column_id: Optional[str] = None
    relationship_type: RelationshipType = RelationshipType.ONE_TO_MANY
    status: ReviewStatus = ReviewStatus.PENDING
    created_at: str = field(default_factory=_now)

    @property
    def pair(self) -> Tuple[Optional[str], Optional[str]]:
        return (self.from_column_id, self.to_column_id)

    @property
    def question_text(self) -> str:
        question = (
            f"Does {self.from_table}.{self.from_column} reference "
            f"{self.to_table}.{self.to_column}?"
        )
        return f"{question} {self.reasoning}".strip()

    @classmethod
    def from_candidate(cls, candidate: RelationshipCandidate, request_id: str) -> ReviewRequest:
        return cls(
            id=request_id,
            from_table=candidate.from_table,
            from_column=candidate.from_column,
            to_table=candidate.to_table,
            to_column=candidate.to_column,
            confidence=candidate.confidence,
            source=candidate.source,
            reasoning=candidate.reasoning,
            from_table_id=candidate.from_table_id,
            from_column_id=candidate.from_column_id,
            to_table_id=candidate.to_table_id,
            to_column_id=candidate.to_column_id,
            relationship_type=candidate.relationship_type,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "from_table": self.from_table,
            "from_column": self.from_column,
            "to_table": self.to_table,
            "to_column": self.to_column,
            "confidence": self.confidence,
            "source": self.source.value,
            "reasoning": self.reasoning,
            "from_table_id": self.from_table_id,
            "from_column_id": self.from_column_id,
            "to_table_id": self.to_table_id,
            "to_column_id": self.to_column_id,
            "relationship_type": self.relationship_type.value,
            "status": self.status.value,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ReviewRequest:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            from_table=data["from_table"],
            from_column=data["from_column"],
            to_table=data["to_table"],
            to_column=data["to_column"],
            confidence=float(data["confidence"]),
            source=CandidateSource(data.get("source", "heuristic")),
            reasoning=data.get("reasoning", ""),
            from_table_id=data.get("from_table_id"),
            from_column_id=data.get("from_column_id"),
            to_table_id=data.get("to_table_id"),
            to_column_id=data.get("to_column_id"),
            relationship_type=RelationshipType(data.get("relationship_type", "one-to-many")),
            status=ReviewStatus(data.get("status", "pending")),
            created_at=data.get("created_at", ""),
        )


@dataclass
class ProfileResult:
    """Outcome of one profiling pass over one table."""
    table_id: str
    table_name: str
    sample_row_count: int
    strategy: SampleStrategy
    offset: int
    total_columns: int = 0
    analyzed_columns: int = 0
    skipped_columns: List[str] = field(default_factory=list)

    # Column names by category
    low_cardinality_columns: List[str] = field(default_factory=list)
    high_null_columns: List[str] = field(default_factory=list)
    numeric_columns: List[str] = field(default_factory=list)
    categorical_columns: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_id": self.table_id,
            "table_name": self.table_name,
            "sample_row_count": self.sample_row_count,
            "strategy": self.strategy.value,
            "offset": self.offset,
            "total_columns": self.total_columns,
            "analyzed_columns": self.analyzed_columns,
            "skipped_columns": self.skipped_columns,
            "low_cardinality_columns": self.low_cardinality_columns,
            "high_null_columns": self.high_null_columns,
            "numeric_columns": self.numeric_columns,
            "categorical_columns": self.categorical_columns,
        }


@dataclass
class DiscoveryResult:
    """Aggregate outcome of a discovery run."""
    candidates: List[RelationshipCandidate] = field(default_factory=list)
    persisted_count: int = 0
    review_request_count: int = 0
    skipped_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "persisted_count": self.persisted_count,
            "review_request_count": self.review_request_count,
            "skipped_count": self.skipped_count,
            "candidates": [c.to_dict() for c in self.candidates],
        }
