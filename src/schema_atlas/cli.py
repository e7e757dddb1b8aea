"""
Command-line interface for schema_atlas.

Provides register, profile, discover, full-pass, ambiguities, summary and
reviews commands. All state (catalog, statistics, relationships, review
requests) lives as JSON files in a state directory.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from schema_atlas.config import AtlasConfig
from schema_atlas.errors import AtlasError
from schema_atlas.models import DiscoveryResult
from schema_atlas.storage import InMemoryMetadataStore, InMemoryReviewQueue

console = Console()

STORE_FILE = "store.json"
REVIEWS_FILE = "reviews.json"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


class AtlasState:
    """Store, review queue and configuration loaded from a state directory."""

    def __init__(self, state_dir: Path, config: AtlasConfig):
        self.state_dir = Path(state_dir)
        self.config = config
        self.store = InMemoryMetadataStore.load(self.state_dir / STORE_FILE)
        self.reviews = InMemoryReviewQueue.load(self.state_dir / REVIEWS_FILE)

    def save(self) -> None:
        self.store.save(self.state_dir / STORE_FILE)
        self.reviews.save(self.state_dir / REVIEWS_FILE)


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    sys.exit(1)


def _split(names: Optional[str]) -> Optional[List[str]]:
    if not names:
        return None
    return [n.strip() for n in names.split(",") if n.strip()]


def _open_source(sample_dir: Optional[Path], oracle_conn: Optional[str], schema: Optional[str]):
    """Build the sampling source selected by the command line options."""
    if sample_dir:
        from schema_atlas.sources import DataFrameSource
        return DataFrameSource.from_directory(sample_dir)
    if oracle_conn:
        from schema_atlas.sources.oracle import OracleSource
        return OracleSource(oracle_conn, default_schema=schema)
    _fail("Provide --sample_dir or --oracle_conn")


def _resolve_table_ids(state: AtlasState, database: str, names: Optional[List[str]]) -> List[str]:
    if names is None:
        return [t.id for t in state.store.get_selected_tables(database)]

    ids = []
    for name in names:
        table = state.store.find_table(database, name)
        if table is None:
            _fail(f"Table not registered in {database}: {name}")
        ids.append(table.id)
    return ids


def source_options(func):
    """Options selecting where sample rows and overlaps come from."""
    func = click.option(
        "--schema",
        type=str,
        default=None,
        help="Schema name (Oracle owner)",
    )(func)
    func = click.option(
        "--oracle_conn",
        type=str,
        default=None,
        help="Oracle connection string (user/pwd@host:port/service)",
    )(func)
    func = click.option(
        "--sample_dir",
        type=click.Path(exists=True, path_type=Path),
        default=None,
        help="Directory containing sample Parquet/CSV files",
    )(func)
    return func


@click.group()
@click.version_option(version="0.1.0", prog_name="schema_atlas")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--state_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path(".schema_atlas"),
    show_default=True,
    help="Directory holding the catalog and review state",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="YAML file with profiling and discovery thresholds",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, state_dir: Path, config_file: Optional[Path]) -> None:
    """
    Schema Atlas - Column Profiling and Relationship Discovery

    Profile sampled table data and discover join relationships between
    tables that declare none.
    """
    setup_logging(verbose)
    try:
        config = AtlasConfig.from_yaml(config_file) if config_file else AtlasConfig()
    except AtlasError as e:
        _fail(str(e))
    ctx.obj = AtlasState(state_dir, config)


@cli.command()
@click.option("--database", type=str, default="default", show_default=True, help="Database id")
@source_options
@click.option(
    "--tables",
    type=str,
    default=None,
    help="Comma-separated list of table names (all available tables if not provided)",
)
@click.option(
    "--relationships",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="YAML file with declared relationship definitions",
)
@click.option("--no_select", is_flag=True, help="Register tables without selecting them for analysis")
@click.pass_obj
def register(
    state: AtlasState,
    database: str,
    sample_dir: Optional[Path],
    oracle_conn: Optional[str],
    schema: Optional[str],
    tables: Optional[str],
    relationships: Optional[Path],
    no_select: bool,
) -> None:
    """
    Register tables and their columns in the catalog.

    Tables already registered for the database are left untouched.
    Declared foreign keys are imported from Oracle constraints and/or a
    relationships YAML file.

    Examples:

        schema-atlas register --sample_dir ./samples

        schema-atlas register --oracle_conn "user/pwd@host:1521/SID" --schema CORE
    """
    from schema_atlas.sources import load_relationships_file, register_declared_relationships

    console.print("[bold blue]Schema Atlas - Register Tables[/bold blue]")
    source = _open_source(sample_dir, oracle_conn, schema)
    wanted = _split(tables)

    if oracle_conn:
        if not schema:
            _fail("--schema is required with --oracle_conn")
        available = [t["name"] for t in source.get_tables(schema)]
    else:
        available = source.table_names

    if wanted is not None:
        wanted_lower = {w.lower() for w in wanted}
        available = [t for t in available if t.lower() in wanted_lower]

    new_names = [t for t in available if state.store.find_table(database, t) is None]
    already = len(available) - len(new_names)
    if already:
        console.print(f"[yellow]{already} tables already registered, skipping them[/yellow]")

    if oracle_conn:
        created = source.register_tables(
            state.store, database, schema, tables=new_names, select=not no_select
        )
    else:
        created = source.register_tables(
            state.store, database, schema=schema or "public", tables=new_names, select=not no_select
        )

    definitions = []
    if oracle_conn:
        definitions.extend(source.get_foreign_keys(schema))
    if relationships:
        definitions.extend(load_relationships_file(relationships))
    declared = register_declared_relationships(state.store, database, definitions) if definitions else 0

    state.save()

    table = Table(title="Registered Tables")
    table.add_column("Table", style="cyan")
    table.add_column("Rows", style="green", justify="right")
    table.add_column("Columns", style="yellow", justify="right")
    table.add_column("Sample Size", style="magenta", justify="right")

    for record in created:
        table.add_row(
            record.name,
            f"{record.row_count:,}" if record.row_count is not None else "-",
            str(record.column_count),
            f"{record.sample.size:,}",
        )

    console.print(table)
    console.print(f"Declared relationships imported: {declared}")


@cli.command()
@click.option("--database", type=str, default="default", show_default=True, help="Database id")
@source_options
@click.option(
    "--tables",
    type=str,
    default=None,
    help="Comma-separated list of table names (all selected tables if not provided)",
)
@click.option("--passes", type=int, default=1, show_default=True, help="Profiling passes per table")
@click.pass_obj
def profile(
    state: AtlasState,
    database: str,
    sample_dir: Optional[Path],
    oracle_conn: Optional[str],
    schema: Optional[str],
    tables: Optional[str],
    passes: int,
) -> None:
    """
    Profile column statistics from one sample batch per table.

    Each pass rotates the table's sample (top, bottom, then random offsets),
    so repeated passes look at different rows.
    """
    from schema_atlas.profiling import ColumnProfiler
    from schema_atlas.progress import profile_tables

    console.print("[bold blue]Schema Atlas - Profiling[/bold blue]")
    source = _open_source(sample_dir, oracle_conn, schema)
    table_ids = _resolve_table_ids(state, database, _split(tables))
    if not table_ids:
        _fail(f"No tables selected in {database}")

    try:
        profiler = ColumnProfiler(state.store, source, state.config)
    except AtlasError as e:
        _fail(str(e))

    results = []
    failures = []
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
    ) as progress:
        task = progress.add_task("Profiling tables...", total=len(table_ids) * passes)
        for _ in range(passes):
            for event in profile_tables(profiler, table_ids):
                progress.update(task, advance=1, description=f"Profiled {event.table_name}")
                if event.ok:
                    results.append(event.result)
                else:
                    failures.append((event.table_name, event.error))

    state.save()

    table = Table(title="Profiling Summary")
    table.add_column("Table", style="cyan")
    table.add_column("Sample", style="green")
    table.add_column("Rows", style="green", justify="right")
    table.add_column("Analyzed", style="yellow", justify="right")
    table.add_column("Skipped", style="red", justify="right")
    table.add_column("Low Card.", justify="right")
    table.add_column("High Null", justify="right")

    for result in results:
        table.add_row(
            result.table_name,
            f"{result.strategy.value}@{result.offset}",
            f"{result.sample_row_count:,}",
            f"{result.analyzed_columns}/{result.total_columns}",
            str(len(result.skipped_columns)),
            str(len(result.low_cardinality_columns)),
            str(len(result.high_null_columns)),
        )

    console.print(table)
    for table_name, error in failures:
        console.print(f"[yellow]Warning: {table_name}: {error}[/yellow]")


def _print_discovery(result: DiscoveryResult, output: Optional[Path]) -> None:
    if result.candidates:
        table = Table(title="Relationship Candidates")
        table.add_column("From", style="cyan")
        table.add_column("To", style="green")
        table.add_column("Confidence", style="yellow", justify="right")
        table.add_column("Type", style="magenta")
        table.add_column("Source", style="blue")
        table.add_column("Reasoning")

        for candidate in result.candidates:
            table.add_row(
                f"{candidate.from_table}.{candidate.from_column}",
                f"{candidate.to_table}.{candidate.to_column}",
                f"{candidate.confidence:.2f}",
                candidate.relationship_type.value,
                candidate.source.value,
                candidate.reasoning,
            )

        console.print(table)
    else:
        console.print("\n[yellow]No relationship candidates found.[/yellow]")

    console.print(
        f"\n[green]Persisted: {result.persisted_count}[/green]  "
        f"[yellow]Review requests: {result.review_request_count}[/yellow]  "
        f"Skipped: {result.skipped_count}"
    )

    if output:
        output = Path(output)
        with open(output, "w") as f:
            json.dump(result.to_dict(), f, indent=2)
        console.print(f"\n[green]Saved discovery result to: {output}[/green]")


def _build_orchestrator(state: AtlasState, source):
    from schema_atlas.discovery import IncrementalDiscoveryOrchestrator, RelationshipScorer

    scorer = RelationshipScorer(source, state.config)
    return IncrementalDiscoveryOrchestrator(state.store, scorer, state.reviews, state.config)


@cli.command()
@click.option("--database", type=str, default="default", show_default=True, help="Database id")
@source_options
@click.option(
    "--tables",
    type=str,
    required=True,
    help="Comma-separated list of newly added table names",
)
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output path for the discovery result JSON",
)
@click.pass_obj
def discover(
    state: AtlasState,
    database: str,
    sample_dir: Optional[Path],
    oracle_conn: Optional[str],
    schema: Optional[str],
    tables: str,
    output: Optional[Path],
) -> None:
    """
    Discover relationships between new tables and the existing selected tables.

    Examples:

        schema-atlas discover --sample_dir ./samples --tables payments,refunds
    """
    console.print("[bold blue]Schema Atlas - Incremental Discovery[/bold blue]")
    source = _open_source(sample_dir, oracle_conn, schema)
    new_ids = _resolve_table_ids(state, database, _split(tables))
    orchestrator = _build_orchestrator(state, source)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Discovering relationships...", total=None)
        result = orchestrator.discover(database, new_ids)
        progress.update(task, completed=True)

    state.save()
    _print_discovery(result, output)


@cli.command("full-pass")
@click.option("--database", type=str, default="default", show_default=True, help="Database id")
@source_options
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output path for the discovery result JSON",
)
@click.pass_obj
def full_pass(
    state: AtlasState,
    database: str,
    sample_dir: Optional[Path],
    oracle_conn: Optional[str],
    schema: Optional[str],
    output: Optional[Path],
) -> None:
    """Score every pair of selected tables and apply the decision policy."""
    console.print("[bold blue]Schema Atlas - Full Discovery Pass[/bold blue]")
    source = _open_source(sample_dir, oracle_conn, schema)
    orchestrator = _build_orchestrator(state, source)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Scoring all table pairs...", total=None)
        result = orchestrator.run_full_pass(database)
        progress.update(task, completed=True)

    state.save()
    _print_discovery(result, output)


@cli.command()
@click.option("--database", type=str, default="default", show_default=True, help="Database id")
@click.pass_obj
def ambiguities(state: AtlasState, database: str) -> None:
    """List source columns whose persisted relationships point at several targets."""
    from schema_atlas.discovery import find_ambiguities, persisted_candidates

    groups = find_ambiguities(persisted_candidates(state.store, database))
    if not groups:
        console.print("[green]No ambiguous relationships.[/green]")
        return

    for group in groups:
        table = Table(title=f"{group.table_name}.{group.column_name}")
        table.add_column("Target", style="cyan")
        table.add_column("Confidence", style="yellow", justify="right")
        for conflict in group.conflicts:
            table.add_row(
                f"{conflict.target_table}.{conflict.target_column}",
                f"{conflict.confidence:.2f}",
            )
        console.print(table)


@cli.command()
@click.option("--database", type=str, default="default", show_default=True, help="Database id")
@click.option(
    "--output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for summary.json and summary.md",
)
@click.pass_obj
def summary(state: AtlasState, database: str, output_dir: Optional[Path]) -> None:
    """Show the statistical summary of a database."""
    from schema_atlas.utils.summary import SummaryReporter

    reporter = SummaryReporter(state.store, database, state.config)
    report = reporter.generate_report()
    totals = report["summary"]

    table = Table(title=f"Statistical Summary: {database}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    table.add_row("Tables", str(totals["total_tables"]))
    table.add_row("Selected Tables", str(totals["selected_tables"]))
    table.add_row("Columns", str(totals["total_columns"]))
    table.add_row("Analyzed Columns", str(totals["analyzed_columns"]))
    table.add_row("Low-Cardinality Columns", str(totals["low_cardinality_columns"]))
    table.add_row("High-Null Columns", str(totals["high_null_columns"]))
    table.add_row("Potential Join Columns", str(totals["potential_join_columns"]))
    table.add_row("Relationships", str(len(report["relationships"])))

    console.print(table)
    for pattern in totals["patterns"]:
        console.print(f"- {pattern}")

    if output_dir:
        json_path, md_path = reporter.save(output_dir)
        console.print(f"\n[green]Saved summary to: {json_path} and {md_path}[/green]")


@cli.command()
@click.option("--approve", "approve_id", type=str, default=None, help="Approve the review request with this id")
@click.option("--reject", "reject_id", type=str, default=None, help="Reject the review request with this id")
@click.option("--all", "show_all", is_flag=True, help="Include resolved requests")
@click.pass_obj
def reviews(
    state: AtlasState,
    approve_id: Optional[str],
    reject_id: Optional[str],
    show_all: bool,
) -> None:
    """List review requests, or record a decision on one."""
    if approve_id or reject_id:
        request_id = approve_id or reject_id
        try:
            request = state.reviews.resolve(request_id, approved=bool(approve_id))
        except KeyError as e:
            _fail(str(e))
        state.save()
        console.print(f"[green]{request.question_text} -> {request.status.value}[/green]")
        return

    requests = state.reviews.all() if show_all else state.reviews.pending()
    if not requests:
        console.print("[green]No review requests.[/green]")
        return

    table = Table(title="Review Requests")
    table.add_column("Id", style="cyan")
    table.add_column("Question", style="green")
    table.add_column("Confidence", style="yellow", justify="right")
    table.add_column("Status", style="magenta")

    for request in requests:
        table.add_row(
            request.id,
            request.question_text,
            f"{request.confidence:.2f}",
            request.status.value,
        )

    console.print(table)


if __name__ == "__main__":
    cli()
