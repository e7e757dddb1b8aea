"""Tests for the command-line interface."""

import json
import tempfile
from pathlib import Path

import pandas as pd
import pytest
from click.testing import CliRunner

from schema_atlas.cli import cli
from schema_atlas.storage import InMemoryMetadataStore


@pytest.fixture
def workspace():
    """Temporary directory with a samples/ folder of CSV files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        samples = root / "samples"
        samples.mkdir()
        pd.DataFrame({
            "id": list(range(1, 51)),
            "name": [f"customer {i}" for i in range(1, 51)],
            "email": [f"c{i}@example.com" for i in range(1, 51)],
        }).to_csv(samples / "customers.csv", index=False)
        pd.DataFrame({
            "id": list(range(1001, 1201)),
            "customer_id": [(i % 50) + 1 for i in range(200)],
            "status": ["open", "shipped", "closed", "returned"] * 50,
        }).to_csv(samples / "orders.csv", index=False)
        yield root


@pytest.fixture
def runner():
    return CliRunner()


def invoke(runner, workspace, *args):
    return runner.invoke(cli, ["--state_dir", str(workspace / "state"), *args])


def load_store(workspace):
    return InMemoryMetadataStore.load(workspace / "state" / "store.json")


class TestCli:
    """Tests for the CLI commands."""

    def test_register(self, runner, workspace):
        result = invoke(runner, workspace, "register", "--sample_dir", str(workspace / "samples"))

        assert result.exit_code == 0, result.output
        store = load_store(workspace)
        assert sorted(t.name for t in store.get_selected_tables("default")) == ["customers", "orders"]

    def test_register_twice_keeps_existing(self, runner, workspace):
        invoke(runner, workspace, "register", "--sample_dir", str(workspace / "samples"))
        result = invoke(runner, workspace, "register", "--sample_dir", str(workspace / "samples"))

        assert result.exit_code == 0, result.output
        assert "2 tables already registered" in result.output
        assert len(load_store(workspace).get_tables_by_database("default")) == 2

    def test_register_with_relationships_file(self, runner, workspace):
        rel_file = workspace / "relationships.yaml"
        rel_file.write_text(
            "relationships:\n"
            "  - name: fk_orders_customer\n"
            "    from_table: orders\n"
            "    from_column: customer_id\n"
            "    to_table: customers\n"
            "    to_column: id\n"
        )

        result = invoke(
            runner, workspace, "register",
            "--sample_dir", str(workspace / "samples"),
            "--relationships", str(rel_file),
        )

        assert result.exit_code == 0, result.output
        assert "Declared relationships imported: 1" in result.output

    def test_profile_passes(self, runner, workspace):
        invoke(runner, workspace, "register", "--sample_dir", str(workspace / "samples"))

        result = invoke(
            runner, workspace, "profile", "--sample_dir", str(workspace / "samples"), "--passes", "2"
        )

        assert result.exit_code == 0, result.output
        store = load_store(workspace)
        for table in store.get_tables_by_database("default"):
            assert table.samples_analyzed == 2
            assert table.sample.strategy.value == "random"

    def test_profile_requires_source(self, runner, workspace):
        invoke(runner, workspace, "register", "--sample_dir", str(workspace / "samples"))

        result = invoke(runner, workspace, "profile")

        assert result.exit_code == 1
        assert "--sample_dir" in result.output

    def test_discover_and_summary(self, runner, workspace):
        samples = str(workspace / "samples")
        invoke(runner, workspace, "register", "--sample_dir", samples)
        invoke(runner, workspace, "profile", "--sample_dir", samples)
        output = workspace / "discovery.json"

        result = invoke(
            runner, workspace, "discover", "--sample_dir", samples,
            "--tables", "orders", "--output", str(output),
        )

        assert result.exit_code == 0, result.output
        assert "Persisted: 1" in result.output
        with open(output) as f:
            saved = json.load(f)
        assert saved["persisted_count"] == 1
        assert len(load_store(workspace).get_relationships("default")) == 1

        report_dir = workspace / "reports"
        result = invoke(runner, workspace, "summary", "--output_dir", str(report_dir))

        assert result.exit_code == 0, result.output
        assert (report_dir / "summary.json").exists()
        assert (report_dir / "summary.md").exists()
        assert "potential join columns identified" in result.output

    def test_discover_nullable_csv_foreign_key(self, runner, workspace):
        """An integer key column with an empty CSV cell still joins to its integer target."""
        samples = workspace / "samples"
        customer_ids = [(i % 50) + 1 for i in range(200)]
        customer_ids[7] = None
        pd.DataFrame({
            "id": list(range(1001, 1201)),
            "customer_id": customer_ids,
            "status": ["open", "shipped", "closed", "returned"] * 50,
        }).to_csv(samples / "orders.csv", index=False)

        invoke(runner, workspace, "register", "--sample_dir", str(samples))
        invoke(runner, workspace, "profile", "--sample_dir", str(samples))
        result = invoke(runner, workspace, "discover", "--sample_dir", str(samples), "--tables", "orders")

        assert result.exit_code == 0, result.output
        assert "Persisted: 1" in result.output

        store = load_store(workspace)
        orders = store.find_table("default", "orders")
        assert store.find_column(orders.id, "customer_id").data_type == "bigint"
        rel = store.get_relationships("default")[0]
        assert store.get_column(rel.from_column_id).name == "customer_id"
        assert store.get_column(rel.to_column_id).name == "id"

    def test_discover_unknown_table(self, runner, workspace):
        invoke(runner, workspace, "register", "--sample_dir", str(workspace / "samples"))

        result = invoke(
            runner, workspace, "discover", "--sample_dir", str(workspace / "samples"), "--tables", "invoices"
        )

        assert result.exit_code == 1
        assert "invoices" in result.output

    def test_reviews_empty(self, runner, workspace):
        result = invoke(runner, workspace, "reviews")

        assert result.exit_code == 0, result.output
        assert "No review requests." in result.output

    def test_resolve_unknown_review(self, runner, workspace):
        result = invoke(runner, workspace, "reviews", "--approve", "nope")

        assert result.exit_code == 1

    def test_ambiguities_empty(self, runner, workspace):
        result = invoke(runner, workspace, "ambiguities")

        assert result.exit_code == 0, result.output
        assert "No ambiguous relationships." in result.output

    def test_invalid_config(self, runner, workspace):
        config_file = workspace / "atlas.yaml"
        config_file.write_text("review_threshold: 0.95\nauto_persist_threshold: 0.8\n")

        result = runner.invoke(cli, ["--config", str(config_file), "--state_dir", str(workspace / "state"), "reviews"])

        assert result.exit_code == 1
