"""Tests for the statistical summary report."""

import json
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from schema_atlas.discovery import IncrementalDiscoveryOrchestrator, RelationshipScorer
from schema_atlas.profiling import ColumnProfiler
from schema_atlas.sources import DataFrameSource
from schema_atlas.storage import InMemoryMetadataStore, InMemoryReviewQueue
from schema_atlas.utils import SummaryReporter, summarize_database


@pytest.fixture(scope="module")
def store():
    """Two profiled tables, one unprofiled, with discovery run once."""
    source = DataFrameSource({
        "customers": pd.DataFrame({
            "id": list(range(1, 21)),
            "segment": ["retail", "business"] * 10,
            "notes": [None] * 15 + ["vip"] * 5,
        }),
        "orders": pd.DataFrame({
            "id": list(range(100, 140)),
            "customer_id": [(i % 20) + 1 for i in range(40)],
        }),
        "audit_log": pd.DataFrame({"event": ["login", "logout"]}),
    })
    store = InMemoryMetadataStore()
    source.register_tables(store, "db")

    profiler = ColumnProfiler(store, source)
    profiler.profile_table(store.find_table("db", "customers").id)
    profiler.profile_table(store.find_table("db", "orders").id)

    orchestrator = IncrementalDiscoveryOrchestrator(store, RelationshipScorer(source), InMemoryReviewQueue())
    orchestrator.discover("db", [store.find_table("db", "orders").id])
    return store


class TestSummaryReporter:
    """Tests for SummaryReporter."""

    def test_totals(self, store):
        summary = summarize_database(store, "db")

        assert summary["total_tables"] == 3
        assert summary["selected_tables"] == 3
        assert summary["total_columns"] == 6
        assert summary["analyzed_columns"] == 5
        assert summary["completion_rate"] == pytest.approx(500 / 6)
        # Every profiled column has cardinality <= 100
        assert summary["low_cardinality_columns"] == 5
        assert summary["high_null_columns"] == 1
        assert summary["potential_join_columns"] == 3

    def test_pattern_lines(self, store):
        patterns = summarize_database(store, "db")["patterns"]

        assert patterns == [
            "5 low-cardinality columns found (good for enum values)",
            "1 columns with high null percentages (>40%)",
            "3 potential join columns identified",
            "Statistical analysis 83.3% complete",
        ]

    def test_table_details(self, store):
        report = SummaryReporter(store, "db").generate_report()

        customers = report["tables"]["customers"]
        assert customers["samples_analyzed"] == 1
        assert customers["next_sample"]["strategy"] == "bottom"
        assert customers["columns"]["notes"]["null_percentage"] == 75.0
        assert report["tables"]["audit_log"]["columns"]["event"]["cardinality"] is None

    def test_relationships(self, store):
        report = SummaryReporter(store, "db").generate_report()

        assert len(report["relationships"]) == 1
        rel = report["relationships"][0]
        assert rel["from"] == "orders.customer_id"
        assert rel["to"] == "customers.id"
        assert rel["source"] == "heuristic"

    def test_save(self, store):
        reporter = SummaryReporter(store, "db")

        with tempfile.TemporaryDirectory() as tmpdir:
            json_path, md_path = reporter.save(Path(tmpdir) / "reports")

            with open(json_path) as f:
                saved = json.load(f)
            markdown = md_path.read_text()

        assert saved["summary"]["analyzed_columns"] == 5
        assert "# Statistical Summary" in markdown
        assert "orders.customer_id" in markdown
        assert "### audit_log" in markdown

    def test_empty_database(self):
        summary = summarize_database(InMemoryMetadataStore(), "db")

        assert summary["total_tables"] == 0
        assert summary["completion_rate"] == 0.0
        assert summary["patterns"] == ["Statistical analysis 0.0% complete"]
