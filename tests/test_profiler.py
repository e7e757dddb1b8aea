"""Tests for the column profiler and the sample rotation policy."""

import pandas as pd
import pytest

from schema_atlas.config import AtlasConfig
from schema_atlas.errors import ProfilingInProgressError, SampleFetchError, TableNotFoundError
from schema_atlas.models import SampleConfig, SampleStrategy
from schema_atlas.profiling import ColumnProfiler, default_sample_size, next_sample_config
from schema_atlas.sources import DataFrameSource, RowSampleSource
from schema_atlas.storage import InMemoryMetadataStore


class StaticSource(RowSampleSource):
    """Returns the same rows for every call and records the calls."""

    def __init__(self, rows, error=None):
        self.rows = rows
        self.error = error
        self.calls = []

    def sample(self, table, schema, strategy, offset, size):
        self.calls.append((table, schema, strategy, offset, size))
        if self.error:
            raise self.error
        return list(self.rows)


def build_table(store, columns, name="things"):
    table = store.create_table("db", name, row_count=len(columns), is_selected=True)
    for col_name, data_type in columns:
        store.create_column(table.id, col_name, data_type)
    return table


class TestSampling:
    """Tests for sample sizing and rotation."""

    def test_default_sample_size(self):
        assert default_sample_size(5_000_000) == 10_000
        assert default_sample_size(500_000) == 5_000
        assert default_sample_size(50_000) == 1_000
        assert default_sample_size(10_000) == 1_000
        assert default_sample_size(250) == 250
        assert default_sample_size(None) == 1_000

    def test_rotation(self):
        config = SampleConfig(size=300)

        second = next_sample_config(config)
        third = next_sample_config(second)
        fourth = next_sample_config(third)

        assert (second.strategy, second.offset) == (SampleStrategy.BOTTOM, 0)
        assert (third.strategy, third.offset) == (SampleStrategy.RANDOM, 1)
        assert (fourth.strategy, fourth.offset) == (SampleStrategy.RANDOM, 2)
        assert fourth.size == 300


class TestColumnProfiler:
    """Tests for ColumnProfiler."""

    @pytest.fixture
    def store(self):
        return InMemoryMetadataStore()

    @pytest.fixture
    def customers(self):
        return pd.DataFrame({
            "id": list(range(1, 201)),
            "email": [f"user{i}@example.com" if i % 4 else None for i in range(1, 201)],
            "status": ["active", "closed", "pending", "active"] * 50,
            "balance": [float(i) * 10 for i in range(1, 201)],
        })

    @pytest.fixture
    def profiled(self, store, customers):
        source = DataFrameSource({"customers": customers})
        source.register_tables(store, "db")
        table = store.find_table("db", "customers")
        profiler = ColumnProfiler(store, source)
        return profiler, table, profiler.profile_table(table.id)

    def test_statistics(self, profiled, store):
        profiler, table, result = profiled
        columns = {c.name: c for c in store.get_columns(table.id)}

        assert result.sample_row_count == 200
        assert result.analyzed_columns == 4
        assert result.skipped_columns == []

        assert columns["id"].cardinality == 200
        assert columns["id"].null_percentage == 0.0
        assert columns["id"].min_value == 1.0
        assert columns["id"].max_value == 200.0
        assert columns["id"].distinct_values is None

        assert columns["email"].cardinality == 150
        assert columns["email"].null_percentage == pytest.approx(25.0)
        assert columns["email"].min_value is None

        assert columns["status"].cardinality == 3
        assert sorted(columns["status"].distinct_values) == ["active", "closed", "pending"]

    def test_cardinality_never_exceeds_sample(self, profiled, store):
        _, table, result = profiled
        for column in store.get_columns(table.id):
            assert 0 <= column.cardinality <= result.sample_row_count
            assert 0.0 <= column.null_percentage <= 100.0

    def test_pattern_tags(self, profiled, store):
        _, table, _ = profiled
        columns = {c.name: c for c in store.get_columns(table.id)}

        assert "email-like" in columns["email"].patterns
        assert "all-unique" in columns["id"].patterns
        assert "low-cardinality" in columns["status"].patterns
        assert "short-text" in columns["status"].patterns
        assert "email-like" not in columns["status"].patterns

    def test_categorization(self, profiled):
        _, _, result = profiled

        assert result.low_cardinality_columns == ["status"]
        assert result.numeric_columns == ["id", "balance"]
        assert result.categorical_columns == ["status"]
        assert result.high_null_columns == []

    def test_rotation_advances(self, profiled, store):
        profiler, table, result = profiled

        assert result.strategy == SampleStrategy.TOP
        after_first = store.get_table(table.id)
        assert after_first.sample.strategy == SampleStrategy.BOTTOM
        assert after_first.samples_analyzed == 1
        assert after_first.last_profiled_at is not None

        second = profiler.profile_table(table.id)
        third = profiler.profile_table(table.id)
        fourth = profiler.profile_table(table.id)

        assert second.strategy == SampleStrategy.BOTTOM
        assert (third.strategy, third.offset) == (SampleStrategy.RANDOM, 1)
        assert (fourth.strategy, fourth.offset) == (SampleStrategy.RANDOM, 2)
        assert store.get_table(table.id).samples_analyzed == 4

    def test_one_sample_call_per_pass(self, store):
        table = build_table(store, [("a", "integer"), ("b", "varchar"), ("c", "varchar")])
        source = StaticSource([{"a": 1, "b": "x", "c": "y"}])

        ColumnProfiler(store, source).profile_table(table.id)

        assert source.calls == [("things", "public", SampleStrategy.TOP, 0, 1000)]

    def test_unparsable_numbers_are_excluded(self, store):
        table = build_table(store, [("amount", "integer")])
        source = StaticSource([{"amount": "12"}, {"amount": "n/a"}, {"amount": "3"}, {"amount": None}])

        result = ColumnProfiler(store, source).profile_table(table.id)

        column = store.get_columns(table.id)[0]
        assert result.skipped_columns == []
        assert column.min_value == 3.0
        assert column.max_value == 12.0
        assert column.cardinality == 3
        assert column.null_percentage == 25.0

    def test_enum_values_capped(self, store):
        table = build_table(store, [("code", "varchar")])
        source = StaticSource([{"code": f"c{i}"} for i in range(30)])
        config = AtlasConfig(max_enum_values=20)

        ColumnProfiler(store, source, config).profile_table(table.id)

        column = store.get_columns(table.id)[0]
        assert column.cardinality == 30
        assert column.distinct_values is None

    def test_failing_column_is_skipped(self, store):
        table = build_table(store, [("tags", "varchar"), ("name", "varchar")])
        source = StaticSource([
            {"tags": ["a", "b"], "name": "first"},
            {"tags": ["c"], "name": "second"},
        ])

        result = ColumnProfiler(store, source).profile_table(table.id)

        columns = {c.name: c for c in store.get_columns(table.id)}
        assert result.skipped_columns == ["tags"]
        assert result.analyzed_columns == 1
        assert columns["tags"].cardinality is None
        assert columns["name"].cardinality == 2

    def test_sample_failure_is_fatal(self, store):
        table = build_table(store, [("a", "integer")])
        source = StaticSource([], error=ConnectionError("connection refused"))

        with pytest.raises(SampleFetchError) as exc_info:
            ColumnProfiler(store, source).profile_table(table.id)

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        after = store.get_table(table.id)
        assert after.samples_analyzed == 0
        assert after.sample.strategy == SampleStrategy.TOP
        assert store.get_columns(table.id)[0].cardinality is None

    def test_empty_sample(self, store):
        table = build_table(store, [("a", "integer")])

        result = ColumnProfiler(store, StaticSource([])).profile_table(table.id)

        column = store.get_columns(table.id)[0]
        assert result.sample_row_count == 0
        assert column.cardinality == 0
        assert column.null_percentage == 0.0

    def test_column_names_match_case_insensitively(self, store):
        table = build_table(store, [("CUSTOMER_ID", "NUMBER(10,0)")])
        source = StaticSource([{"customer_id": 1}, {"customer_id": 2}])

        ColumnProfiler(store, source).profile_table(table.id)

        assert store.get_columns(table.id)[0].cardinality == 2

    def test_unknown_table(self, store):
        with pytest.raises(TableNotFoundError):
            ColumnProfiler(store, StaticSource([])).profile_table("missing")

    def test_concurrent_pass_rejected(self, store):
        table = build_table(store, [("a", "integer")])
        profiler = ColumnProfiler(store, StaticSource([{"a": 1}]))

        lock = profiler._table_lock(table.id)
        lock.acquire()
        try:
            with pytest.raises(ProfilingInProgressError):
                profiler.profile_table(table.id)
        finally:
            lock.release()

        profiler.profile_table(table.id)
        assert store.get_table(table.id).samples_analyzed == 1
