"""
In-process implementations of the metadata store and review queue.

Both keep their records in dictionaries guarded by a lock and can be saved
to and loaded from JSON files, which is what the CLI uses as its state.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from schema_atlas.models import (
    ColumnRecord,
    DeclaredRelationship,
    PersistedRelationship,
    RelationshipCandidate,
    ReviewRequest,
    ReviewStatus,
    SampleConfig,
    TableRecord,
)
from schema_atlas.storage.base import MetadataStore, ReviewQueue

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryMetadataStore(MetadataStore):
    """Metadata store backed by dictionaries."""

    def __init__(self):
        self._lock = threading.RLock()
        self._tables: Dict[str, TableRecord] = {}
        self._columns: Dict[str, ColumnRecord] = {}
        self._relationships: Dict[str, PersistedRelationship] = {}
        self._relationship_pairs: Dict[Tuple[str, str], str] = {}
        self._declared: List[DeclaredRelationship] = []

    # Tables

    def create_table(
        self,
        database_id: str,
        name: str,
        schema: str = "public",
        row_count: Optional[int] = None,
        column_count: Optional[int] = None,
        is_selected: bool = False,
        sample_size: Optional[int] = None,
    ) -> TableRecord:
        table = TableRecord(
            id=_new_id(),
            database_id=database_id,
            name=name,
            schema=schema,
            row_count=row_count,
            column_count=column_count,
            is_selected=is_selected,
        )
        if sample_size:
            table.sample = SampleConfig(size=sample_size)

        with self._lock:
            self._tables[table.id] = table
        return table

    def get_table(self, table_id: str) -> Optional[TableRecord]:
        return self._tables.get(table_id)

    def find_table(self, database_id: str, name: str) -> Optional[TableRecord]:
        """Get table by name within a database (case-insensitive)."""
        name_lower = name.lower()
        for table in self.get_tables_by_database(database_id):
            if table.name.lower() == name_lower:
                return table
        return None

    def update_table(self, table: TableRecord) -> None:
        with self._lock:
            if table.id not in self._tables:
                raise KeyError(f"Unknown table id: {table.id}")
            self._tables[table.id] = table

    def set_table_selected(self, table_id: str, is_selected: bool = True) -> None:
        with self._lock:
            self._tables[table_id].is_selected = is_selected

    def get_tables_by_database(self, database_id: str) -> List[TableRecord]:
        return [t for t in self._tables.values() if t.database_id == database_id]

    def get_selected_tables(self, database_id: str) -> List[TableRecord]:
        return [t for t in self.get_tables_by_database(database_id) if t.is_selected]

    # Columns

    def create_column(
        self,
        table_id: str,
        name: str,
        data_type: str,
        is_nullable: bool = True,
        is_unique: bool = False,
    ) -> ColumnRecord:
        column = ColumnRecord(
            id=_new_id(),
            table_id=table_id,
            name=name,
            data_type=data_type,
            is_nullable=is_nullable,
            is_unique=is_unique,
        )
        with self._lock:
            if table_id not in self._tables:
                raise KeyError(f"Unknown table id: {table_id}")
            self._columns[column.id] = column
        return column

    def get_column(self, column_id: str) -> Optional[ColumnRecord]:
        return self._columns.get(column_id)

    def find_column(self, table_id: str, name: str) -> Optional[ColumnRecord]:
        """Get column by name within a table (case-insensitive)."""
        name_lower = name.lower()
        for column in self.get_columns(table_id):
            if column.name.lower() == name_lower:
                return column
        return None

    def get_columns(self, table_id: str) -> List[ColumnRecord]:
        return [c for c in self._columns.values() if c.table_id == table_id]

    def update_column(self, column: ColumnRecord) -> None:
        with self._lock:
            if column.id not in self._columns:
                raise KeyError(f"Unknown column id: {column.id}")
            self._columns[column.id] = column

    # Relationships

    def get_relationships(self, database_id: Optional[str] = None) -> List[PersistedRelationship]:
        relationships = list(self._relationships.values())
        if database_id is None:
            return relationships
        return [
            r for r in relationships
            if r.from_table_id in self._tables
            and self._tables[r.from_table_id].database_id == database_id
        ]

    def get_relationships_for_table(self, table_id: str) -> List[PersistedRelationship]:
        return [r for r in self._relationships.values() if r.from_table_id == table_id]

    def relationship_exists(self, from_column_id: str, to_column_id: str) -> bool:
        return (from_column_id, to_column_id) in self._relationship_pairs

    def create_relationship_if_absent(
        self,
        candidate: RelationshipCandidate,
    ) -> Optional[PersistedRelationship]:
        with self._lock:
            if candidate.pair in self._relationship_pairs:
                return None
            record = PersistedRelationship.from_candidate(candidate, _new_id())
            self._relationships[record.id] = record
            self._relationship_pairs[record.pair] = record.id
        return record

    def mark_validated(self, from_column_id: str, to_column_id: str) -> bool:
        with self._lock:
            record_id = self._relationship_pairs.get((from_column_id, to_column_id))
            if record_id is None or self._relationships[record_id].is_validated:
                return False
            self._relationships[record_id] = replace(self._relationships[record_id], is_validated=True)
        return True

    def add_declared_relationship(self, declared: DeclaredRelationship) -> None:
        """Register a catalog constraint for later authoritative extraction."""
        with self._lock:
            key = (declared.from_column_id, declared.to_column_id)
            if any((d.from_column_id, d.to_column_id) == key for d in self._declared):
                return
            self._declared.append(declared)

    def list_declared_relationships(self, table_ids: Iterable[str]) -> List[DeclaredRelationship]:
        wanted = set(table_ids)
        return [d for d in self._declared if d.from_table_id in wanted]

    # Persistence

    def to_dict(self) -> Dict[str, list]:
        return {
            "tables": [t.to_dict() for t in self._tables.values()],
            "columns": [c.to_dict() for c in self._columns.values()],
            "relationships": [r.to_dict() for r in self._relationships.values()],
            "declared_relationships": [d.to_dict() for d in self._declared],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, list]) -> InMemoryMetadataStore:
        store = cls()
        for tdata in data.get("tables", []):
            table = TableRecord.from_dict(tdata)
            store._tables[table.id] = table
        for cdata in data.get("columns", []):
            column = ColumnRecord.from_dict(cdata)
            store._columns[column.id] = column
        for rdata in data.get("relationships", []):
            rel = PersistedRelationship.from_dict(rdata)
            store._relationships[rel.id] = rel
            store._relationship_pairs[rel.pair] = rel.id
        for ddata in data.get("declared_relationships", []):
            store._declared.append(DeclaredRelationship.from_dict(ddata))
        return store

    def save(self, path: Path) -> None:
        """Save the store as a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            payload = self.to_dict()
        with open(path, "w") as f:
            json.dump(payload, f, indent=2, default=str)
        logger.debug(f"Saved metadata store to {path}")

    @classmethod
    def load(cls, path: Path) -> InMemoryMetadataStore:
        """Load a store saved with save(); a missing file yields an empty store."""
        path = Path(path)
        if not path.exists():
            return cls()
        with open(path, "r") as f:
            return cls.from_dict(json.load(f))


class InMemoryReviewQueue(ReviewQueue):
    """Review queue backed by a dictionary, at most one request per column pair."""

    def __init__(self):
        self._lock = threading.Lock()
        self._requests: Dict[str, ReviewRequest] = {}

    def submit(self, request: ReviewRequest) -> bool:
        with self._lock:
            if any(r.pair == request.pair for r in self._requests.values()):
                return False
            self._requests[request.id] = request
        return True

    def has_request(self, from_column_id: str, to_column_id: str) -> bool:
        pair = (from_column_id, to_column_id)
        return any(r.pair == pair for r in self._requests.values())

    def pending(self) -> List[ReviewRequest]:
        return [r for r in self._requests.values() if r.status == ReviewStatus.PENDING]

    def all(self) -> List[ReviewRequest]:
        return list(self._requests.values())

    def resolve(self, request_id: str, approved: bool) -> ReviewRequest:
        with self._lock:
            request = self._requests.get(request_id)
            if request is None:
                raise KeyError(f"Unknown review request: {request_id}")
            request.status = ReviewStatus.APPROVED if approved else ReviewStatus.REJECTED
        logger.info(f"Review {request_id} resolved as {request.status.value}")
        return request

    def save(self, path: Path) -> None:
        """Save all requests as a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump([r.to_dict() for r in self.all()], f, indent=2)

    @classmethod
    def load(cls, path: Path) -> InMemoryReviewQueue:
        queue = cls()
        path = Path(path)
        if not path.exists():
            return queue
        with open(path, "r") as f:
            for data in json.load(f):
                request = ReviewRequest.from_dict(data)
                queue._requests[request.id] = request
        return queue
