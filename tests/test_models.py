"""Tests for data models."""

import pytest

from schema_atlas.models import (
    CandidateSource,
    ColumnRecord,
    PersistedRelationship,
    RelationshipCandidate,
    RelationshipType,
    ReviewRequest,
    ReviewStatus,
    SampleConfig,
    SampleStrategy,
    TableRecord,
    is_numeric_type,
    is_text_type,
    type_family,
)


@pytest.fixture
def candidate():
    return RelationshipCandidate(
        from_table_id="t-orders",
        from_table="orders",
        from_column_id="c-customer-id",
        from_column="customer_id",
        to_table_id="t-customers",
        to_table="customers",
        to_column_id="c-id",
        to_column="id",
        confidence=0.72,
        reasoning="High name similarity, Foreign key naming pattern",
    )


class TestTypeFamily:
    """Tests for declared type normalization."""

    def test_text_types(self):
        assert type_family("varchar") == "text"
        assert type_family("VARCHAR2(100)") == "text"
        assert type_family("character varying") == "text"
        assert type_family("TEXT") == "text"
        assert type_family("str") == "text"

    def test_integer_types(self):
        assert type_family("integer") == "integer"
        assert type_family("bigint") == "integer"
        assert type_family("serial") == "integer"
        assert type_family("NUMBER(10,0)") == "integer"
        assert type_family("NUMBER(38)") == "integer"

    def test_decimal_types(self):
        assert type_family("numeric") == "decimal"
        assert type_family("double precision") == "decimal"
        assert type_family("NUMBER(12,2)") == "decimal"
        assert type_family("NUMBER") == "decimal"

    def test_temporal_and_boolean(self):
        assert type_family("timestamp without time zone") == "temporal"
        assert type_family("DATE") == "temporal"
        assert type_family("boolean") == "boolean"

    def test_unknown_type_is_lowercased(self):
        """Unknown types fall back to their lower-cased name, not the integer family."""
        assert type_family("POINT") == "point"
        assert type_family("geometry") == "geometry"

    def test_helpers(self):
        assert is_numeric_type("int4")
        assert is_numeric_type("real")
        assert not is_numeric_type("varchar")
        assert is_text_type("char(3)")


class TestTableRecord:
    """Tests for TableRecord."""

    def test_defaults(self):
        table = TableRecord(id="t1", database_id="db", name="orders")

        assert table.sample.strategy == SampleStrategy.TOP
        assert table.sample.offset == 0
        assert table.samples_analyzed == 0
        assert table.full_name == "public.orders"

    def test_serialization(self):
        table = TableRecord(
            id="t1",
            database_id="db",
            name="orders",
            row_count=5000,
            sample=SampleConfig(strategy=SampleStrategy.RANDOM, offset=3, size=500),
            samples_analyzed=4,
        )

        restored = TableRecord.from_dict(table.to_dict())

        assert restored == table
        assert restored.sample.strategy == SampleStrategy.RANDOM


class TestColumnRecord:
    """Tests for ColumnRecord."""

    def test_profiled_flag(self):
        column = ColumnRecord(id="c1", table_id="t1", name="status", data_type="varchar")
        assert not column.is_profiled
        assert column.family == "text"

        column.cardinality = 0
        assert column.is_profiled

    def test_serialization_keeps_statistics(self):
        column = ColumnRecord(
            id="c1",
            table_id="t1",
            name="amount",
            data_type="numeric",
            cardinality=12,
            null_percentage=25.0,
            min_value=1.5,
            max_value=99.0,
            distinct_values=[1.5, 99.0],
            patterns=["medium-cardinality"],
        )

        assert ColumnRecord.from_dict(column.to_dict()) == column


class TestRelationshipRecords:
    """Tests for candidates, persisted relationships and review requests."""

    def test_candidate_pair_and_label(self, candidate):
        assert candidate.pair == ("c-customer-id", "c-id")
        assert candidate.label == "orders.customer_id -> customers.id"
        assert candidate.to_dict()["source"] == "heuristic"

    def test_heuristic_candidate_is_not_validated(self, candidate):
        record = PersistedRelationship.from_candidate(candidate, "r1")

        assert record.pair == candidate.pair
        assert record.source == CandidateSource.HEURISTIC
        assert not record.is_validated

    def test_catalog_candidate_is_validated(self, candidate):
        candidate.source = CandidateSource.CATALOG
        candidate.confidence = 1.0

        record = PersistedRelationship.from_candidate(candidate, "r1")

        assert record.is_validated

    def test_persisted_serialization(self, candidate):
        record = PersistedRelationship.from_candidate(candidate, "r1")
        restored = PersistedRelationship.from_dict(record.to_dict())

        assert restored == record
        assert restored.relationship_type == RelationshipType.ONE_TO_MANY

    def test_review_request_carries_candidate(self, candidate):
        request = ReviewRequest.from_candidate(candidate, "q1")

        assert request.pair == candidate.pair
        assert request.confidence == candidate.confidence
        assert request.status == ReviewStatus.PENDING
        assert request.question_text == (
            "Does orders.customer_id reference customers.id? "
            "High name similarity, Foreign key naming pattern"
        )

    def test_review_request_serialization(self, candidate):
        request = ReviewRequest.from_candidate(candidate, "q1")
        request.status = ReviewStatus.REJECTED

        restored = ReviewRequest.from_dict(request.to_dict())

        assert restored == request
