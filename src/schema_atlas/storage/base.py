"""Abstract interfaces for the metadata store and the human review queue."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from schema_atlas.models import (
    ColumnRecord,
    DeclaredRelationship,
    PersistedRelationship,
    RelationshipCandidate,
    ReviewRequest,
    TableRecord,
)


class MetadataStore(ABC):
    """Durable home of table, column and relationship records."""

    # Tables

    @abstractmethod
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
        """Create and return a new table record."""

    @abstractmethod
    def get_table(self, table_id: str) -> Optional[TableRecord]:
        """Return a table record or None."""

    @abstractmethod
    def update_table(self, table: TableRecord) -> None:
        """Replace a table record, including its sample rotation state."""

    @abstractmethod
    def get_tables_by_database(self, database_id: str) -> List[TableRecord]:
        """All tables cataloged for a database."""

    @abstractmethod
    def get_selected_tables(self, database_id: str) -> List[TableRecord]:
        """Tables of a database that are selected for analysis."""

    # Columns

    @abstractmethod
    def create_column(
        self,
        table_id: str,
        name: str,
        data_type: str,
        is_nullable: bool = True,
        is_unique: bool = False,
    ) -> ColumnRecord:
        """Create and return a new column record."""

    @abstractmethod
    def get_column(self, column_id: str) -> Optional[ColumnRecord]:
        """Return a column record or None."""

    @abstractmethod
    def get_columns(self, table_id: str) -> List[ColumnRecord]:
        """Columns of a table in creation order."""

    @abstractmethod
    def update_column(self, column: ColumnRecord) -> None:
        """Replace a column record (statistics included)."""

    # Relationships

    @abstractmethod
    def get_relationships(self, database_id: Optional[str] = None) -> List[PersistedRelationship]:
        """Persisted relationships, optionally restricted to one database."""

    @abstractmethod
    def get_relationships_for_table(self, table_id: str) -> List[PersistedRelationship]:
        """Persisted relationships whose source is the given table."""

    @abstractmethod
    def relationship_exists(self, from_column_id: str, to_column_id: str) -> bool:
        """True if a relationship for this column pair is already persisted."""

    @abstractmethod
    def create_relationship_if_absent(
        self,
        candidate: RelationshipCandidate,
    ) -> Optional[PersistedRelationship]:
        """
        Persist a candidate unless its column pair already exists.

        The existence check and the write form one atomic step. Returns the
        new record, or None when the pair was already persisted.
        """

    @abstractmethod
    def mark_validated(self, from_column_id: str, to_column_id: str) -> bool:
        """
        Mark a persisted relationship as confirmed by a declared constraint.

        Returns True if an unvalidated record for the pair was upgraded.
        """

    @abstractmethod
    def list_declared_relationships(self, table_ids: Iterable[str]) -> List[DeclaredRelationship]:
        """Catalog-declared relationships whose source table is in table_ids."""


class ReviewQueue(ABC):
    """Sink for relationship candidates that need a human decision."""

    @abstractmethod
    def submit(self, request: ReviewRequest) -> bool:
        """
        Queue a request.

        Returns False without queuing when a request for the same column
        pair already exists, whether pending or resolved.
        """

    @abstractmethod
    def has_request(self, from_column_id: str, to_column_id: str) -> bool:
        """True if any request (pending or resolved) exists for the pair."""

    @abstractmethod
    def pending(self) -> List[ReviewRequest]:
        """Requests still waiting for a decision."""

    @abstractmethod
    def resolve(self, request_id: str, approved: bool) -> ReviewRequest:
        """Record a human decision on a request."""
