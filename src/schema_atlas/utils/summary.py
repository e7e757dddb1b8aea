"""
Statistical summary reporting for a cataloged database.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from schema_atlas.config import AtlasConfig
from schema_atlas.models import ColumnRecord, TableRecord
from schema_atlas.storage.base import MetadataStore

logger = logging.getLogger(__name__)


def is_potential_join_column(name: str) -> bool:
    name = name.lower()
    return name == "id" or name.endswith("_id")


class SummaryReporter:
    """
    Generates a statistical summary of a database's selected tables.

    Reports include:
    - Table and column totals
    - Low-cardinality and high-null column counts
    - Potential join columns
    - Profiling completion rate
    - Per-table column statistics and persisted relationships
    """

    def __init__(
        self,
        store: MetadataStore,
        database_id: str,
        config: Optional[AtlasConfig] = None,
    ):
        """
        Initialize summary reporter.

        Args:
            store: Metadata store to summarize
            database_id: Database to summarize
            config: Thresholds for low-cardinality and high-null columns
        """
        self.store = store
        self.database_id = database_id
        self.config = config or AtlasConfig()

        self.report: Dict[str, Any] = {
            "generated_at": datetime.now().isoformat(),
            "database_id": database_id,
            "summary": {},
            "tables": {},
            "relationships": [],
        }

    def generate_report(self) -> Dict[str, Any]:
        """
        Generate the summary report.

        Returns:
            Report dictionary
        """
        tables = self.store.get_tables_by_database(self.database_id)
        selected = [t for t in tables if t.is_selected]

        totals = {
            "total_tables": len(tables),
            "selected_tables": len(selected),
            "total_columns": 0,
            "analyzed_columns": 0,
            "low_cardinality_columns": 0,
            "high_null_columns": 0,
            "potential_join_columns": 0,
        }

        for table in selected:
            columns = self.store.get_columns(table.id)
            totals["total_columns"] += len(columns)

            for column in columns:
                if not column.is_profiled:
                    continue
                totals["analyzed_columns"] += 1
                if column.cardinality <= self.config.max_enum_values:
                    totals["low_cardinality_columns"] += 1
                if (column.null_percentage or 0) > self.config.high_null_threshold:
                    totals["high_null_columns"] += 1
                if is_potential_join_column(column.name):
                    totals["potential_join_columns"] += 1

            self.report["tables"][table.name] = self._analyze_table(table, columns)

        total_columns = totals["total_columns"]
        totals["completion_rate"] = (
            totals["analyzed_columns"] / total_columns * 100 if total_columns else 0.0
        )
        totals["patterns"] = self._summary_patterns(totals)
        self.report["summary"] = totals

        self.report["relationships"] = self._describe_relationships()
        return self.report

    def _analyze_table(self, table: TableRecord, columns: List[ColumnRecord]) -> Dict[str, Any]:
        return {
            "schema": table.schema,
            "row_count": table.row_count,
            "column_count": len(columns),
            "samples_analyzed": table.samples_analyzed,
            "next_sample": table.sample.to_dict(),
            "last_profiled_at": table.last_profiled_at,
            "columns": {
                c.name: {
                    "data_type": c.data_type,
                    "cardinality": c.cardinality,
                    "null_percentage": c.null_percentage,
                    "min_value": c.min_value,
                    "max_value": c.max_value,
                    "patterns": c.patterns,
                }
                for c in columns
            },
        }

    def _summary_patterns(self, totals: Dict[str, Any]) -> List[str]:
        patterns = []
        if totals["low_cardinality_columns"] > 0:
            patterns.append(
                f"{totals['low_cardinality_columns']} low-cardinality columns found (good for enum values)"
            )
        if totals["high_null_columns"] > 0:
            patterns.append(
                f"{totals['high_null_columns']} columns with high null percentages "
                f"(>{self.config.high_null_threshold:g}%)"
            )
        if totals["potential_join_columns"] > 0:
            patterns.append(f"{totals['potential_join_columns']} potential join columns identified")
        patterns.append(f"Statistical analysis {totals['completion_rate']:.1f}% complete")
        return patterns

    def _describe_relationships(self) -> List[Dict[str, Any]]:
        described = []
        for rel in self.store.get_relationships(self.database_id):
            from_table = self.store.get_table(rel.from_table_id)
            to_table = self.store.get_table(rel.to_table_id)
            from_column = self.store.get_column(rel.from_column_id)
            to_column = self.store.get_column(rel.to_column_id)
            if not (from_table and to_table and from_column and to_column):
                continue

            described.append({
                "from": f"{from_table.name}.{from_column.name}",
                "to": f"{to_table.name}.{to_column.name}",
                "confidence": rel.confidence,
                "source": rel.source.value,
                "relationship_type": rel.relationship_type.value,
                "is_validated": rel.is_validated,
                "reasoning": rel.reasoning,
            })
        return described

    def save(self, output_dir: Path) -> Tuple[Path, Path]:
        """
        Save summary report to files.

        Args:
            output_dir: Output directory

        Returns:
            Tuple of (json_path, markdown_path)
        """
        if not self.report["summary"]:
            self.generate_report()

        report_dir = Path(output_dir)
        report_dir.mkdir(parents=True, exist_ok=True)

        json_path = report_dir / "summary.json"
        with open(json_path, "w") as f:
            json.dump(self.report, f, indent=2, default=str)

        md_path = report_dir / "summary.md"
        with open(md_path, "w") as f:
            f.write(self.to_markdown())

        logger.info(f"Summary report saved to {report_dir}")
        return json_path, md_path

    def to_markdown(self) -> str:
        """Render the report as Markdown."""
        summary = self.report["summary"]
        lines = [
            "# Statistical Summary",
            "",
            f"Generated: {self.report['generated_at']}",
            "",
            "## Summary",
            "",
            f"- **Tables**: {summary['total_tables']} ({summary['selected_tables']} selected)",
            f"- **Columns**: {summary['analyzed_columns']}/{summary['total_columns']} analyzed",
            f"- **Completion**: {summary['completion_rate']:.1f}%",
            "",
        ]

        for pattern in summary["patterns"]:
            lines.append(f"- {pattern}")
        lines.append("")

        if self.report["relationships"]:
            lines.append("## Relationships")
            lines.append("")
            lines.append("| From | To | Confidence | Type | Source | Validated |")
            lines.append("|------|----|------------|------|--------|-----------|")
            for rel in self.report["relationships"]:
                lines.append(
                    f"| {rel['from']} | {rel['to']} | {rel['confidence']:.2f} | "
                    f"{rel['relationship_type']} | {rel['source']} | {'yes' if rel['is_validated'] else 'no'} |"
                )
            lines.append("")

        lines.append("## Table Details")
        lines.append("")

        for table_name, table_report in self.report["tables"].items():
            lines.append(f"### {table_name}")
            lines.append("")
            if table_report["row_count"] is not None:
                lines.append(f"- Rows: {table_report['row_count']:,}")
            lines.append(f"- Columns: {table_report['column_count']}")
            lines.append(f"- Samples Analyzed: {table_report['samples_analyzed']}")
            lines.append("")

            lines.append("| Column | Type | Nulls | Distinct | Patterns |")
            lines.append("|--------|------|-------|----------|----------|")

            for col_name, col_report in table_report["columns"].items():
                if col_report["cardinality"] is None:
                    nulls, distinct = "-", "-"
                else:
                    nulls = f"{col_report['null_percentage']:.1f}%"
                    distinct = f"{col_report['cardinality']:,}"
                lines.append(
                    f"| {col_name} | {col_report['data_type']} | {nulls} | {distinct} | "
                    f"{', '.join(col_report['patterns'])} |"
                )

            lines.append("")

        return "\n".join(lines)


def summarize_database(
    store: MetadataStore,
    database_id: str,
    config: Optional[AtlasConfig] = None,
) -> Dict[str, Any]:
    """Convenience wrapper returning the summary section of the report."""
    return SummaryReporter(store, database_id, config).generate_report()["summary"]
