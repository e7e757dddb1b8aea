"""
Oracle sampling source, overlap oracle and catalog reader using oracledb.

Reads table and column definitions and declared foreign keys from the
Oracle data dictionary views, and serves row samples and value-overlap
measurements with plain SQL.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from schema_atlas.models import OverlapResult, SampleStrategy, TableRecord
from schema_atlas.profiling.sampling import default_sample_size
from schema_atlas.sources.base import RowSampleSource, ValueOverlapOracle
from schema_atlas.sources.frames import frame_to_rows
from schema_atlas.storage.base import MetadataStore

logger = logging.getLogger(__name__)

# ORA_HASH maximum bucket, gives a full-range pseudo-random ordering
_MAX_BUCKET = 4294967295


def build_sample_sql(
    schema: str,
    table_name: str,
    strategy: SampleStrategy,
    offset: int,
    size: int,
    order_column: Optional[str] = None,
) -> str:
    """
    Build the single query that fetches one sample batch.

    With an order column TOP means most recent rows and BOTTOM the oldest;
    without one ROWID order is used. RANDOM orders rows by ORA_HASH seeded
    with the offset, so the same offset always yields the same rows.
    """
    source = f"{schema.upper()}.{table_name.upper()}"
    key = order_column.upper() if order_column else "ROWID"

    if strategy == SampleStrategy.RANDOM:
        order = f"ORA_HASH(ROWID, {_MAX_BUCKET}, {int(offset)})"
        skip = 0
    elif strategy == SampleStrategy.TOP:
        order = f"{key} DESC" if order_column else key
        skip = int(offset)
    else:
        order = key if order_column else f"{key} DESC"
        skip = int(offset)

    return (
        f"SELECT * FROM {source} ORDER BY {order} "
        f"OFFSET {skip} ROWS FETCH FIRST {int(size)} ROWS ONLY"
    )


def build_overlap_sql(
    schema: str,
    table_a: str,
    column_a: str,
    table_b: str,
    column_b: str,
) -> str:
    """Build the distinct-value intersection query for two columns."""
    schema = schema.upper()
    return f"""
        WITH source_values AS (
            SELECT DISTINCT {column_a.upper()} AS value
            FROM {schema}.{table_a.upper()}
            WHERE {column_a.upper()} IS NOT NULL
        ),
        target_values AS (
            SELECT DISTINCT {column_b.upper()} AS value
            FROM {schema}.{table_b.upper()}
            WHERE {column_b.upper()} IS NOT NULL
        ),
        matches AS (
            SELECT value FROM source_values
            INTERSECT
            SELECT value FROM target_values
        )
        SELECT
            (SELECT COUNT(*) FROM source_values) AS total_values,
            (SELECT COUNT(*) FROM matches) AS matching_values
        FROM dual
    """


def _declared_type(data_type: str, precision: Optional[int], scale: Optional[int]) -> str:
    """Render an Oracle column type with precision/scale for NUMBER columns."""
    if data_type.upper() == "NUMBER" and scale is not None:
        return f"NUMBER({precision or 38},{scale})"
    return data_type


class OracleSource(RowSampleSource, ValueOverlapOracle):
    """
    Oracle-backed sampling source and catalog reader.

    Uses Oracle data dictionary views:
    - ALL_TABLES
    - ALL_TAB_COLUMNS
    - ALL_CONSTRAINTS / ALL_CONS_COLUMNS
    """

    def __init__(
        self,
        connection_string: str,
        default_schema: Optional[str] = None,
        order_columns: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize source with Oracle connection.

        Args:
            connection_string: Oracle connection string (user/pwd@host:port/service)
            default_schema: Owner used when callers pass no schema
            order_columns: Optional table -> recency column map used by TOP/BOTTOM
        """
        self.connection_string = connection_string
        self.default_schema = default_schema
        self.order_columns = {k.upper(): v for k, v in (order_columns or {}).items()}
        self._conn = None

    def connect(self) -> None:
        """Establish database connection."""
        import oracledb

        # Parse connection string: user/pwd@host:port/service
        parts = self.connection_string.split("@")
        user_pwd = parts[0]
        host_service = parts[1] if len(parts) > 1 else ""

        user, password = user_pwd.split("/") if "/" in user_pwd else (user_pwd, "")

        if ":" in host_service:
            host_port, service = host_service.rsplit("/", 1) if "/" in host_service else (host_service, "")
            host, port = host_port.split(":") if ":" in host_port else (host_port, "1521")
            dsn = oracledb.makedsn(host, int(port), service_name=service)
        else:
            dsn = host_service

        self._conn = oracledb.connect(user=user, password=password, dsn=dsn)
        logger.info(f"Connected to Oracle database as {user}")

    def disconnect(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def _cursor(self):
        if not self._conn:
            self.connect()
        return self._conn.cursor()

    def _schema(self, schema: Optional[str]) -> str:
        owner = schema or self.default_schema
        if not owner:
            raise ValueError("No schema given and no default schema configured")
        return owner.upper()

    def get_tables(self, schema: str) -> List[Dict[str, Any]]:
        """Get table names and optimizer row counts for a schema."""
        with self._cursor() as cursor:
            cursor.execute("""
                SELECT table_name, num_rows
                FROM all_tables
                WHERE owner = :owner
                ORDER BY table_name
            """, owner=schema.upper())
            return [{"name": row[0], "row_count": row[1]} for row in cursor]

    def get_columns(self, schema: str, table_name: str) -> List[Dict[str, Any]]:
        """Get column definitions for a table in column order."""
        columns = []
        with self._cursor() as cursor:
            cursor.execute("""
                SELECT column_name, data_type, nullable, data_precision, data_scale
                FROM all_tab_columns
                WHERE owner = :owner AND table_name = :table_name
                ORDER BY column_id
            """, owner=schema.upper(), table_name=table_name.upper())

            for col_name, data_type, nullable, precision, scale in cursor:
                columns.append({
                    "name": col_name,
                    "data_type": _declared_type(data_type, precision, scale),
                    "nullable": nullable == "Y",
                })
        return columns

    def get_foreign_keys(self, schema: str) -> List[Dict[str, str]]:
        """
        Get all single-position foreign key column mappings in a schema.

        Returns:
            List of {name, from_table, from_column, to_table, to_column}
        """
        with self._cursor() as cursor:
            cursor.execute("""
                SELECT
                    c.constraint_name,
                    c.table_name,
                    cc.column_name,
                    rc.table_name,
                    rcc.column_name
                FROM all_constraints c
                JOIN all_cons_columns cc
                    ON c.owner = cc.owner
                    AND c.constraint_name = cc.constraint_name
                JOIN all_constraints rc
                    ON c.r_owner = rc.owner
                    AND c.r_constraint_name = rc.constraint_name
                JOIN all_cons_columns rcc
                    ON rc.owner = rcc.owner
                    AND rc.constraint_name = rcc.constraint_name
                    AND cc.position = rcc.position
                WHERE c.owner = :owner
                    AND c.constraint_type = 'R'
                ORDER BY c.constraint_name, cc.position
            """, owner=schema.upper())

            foreign_keys = [
                {
                    "name": row[0],
                    "from_table": row[1],
                    "from_column": row[2],
                    "to_table": row[3],
                    "to_column": row[4],
                }
                for row in cursor
            ]
        logger.info(f"Found {len(foreign_keys)} FK column mappings in {schema.upper()}")
        return foreign_keys

    def sample(
        self,
        table: str,
        schema: Optional[str],
        strategy: SampleStrategy,
        offset: int,
        size: int,
    ) -> List[Dict[str, Any]]:
        import pandas as pd

        owner = self._schema(schema)
        sql = build_sample_sql(
            owner, table, strategy, offset, size,
            order_column=self.order_columns.get(table.upper()),
        )
        logger.debug(f"Sampling {owner}.{table} with {strategy.value} (offset {offset}, size {size})")

        if not self._conn:
            self.connect()
        return frame_to_rows(pd.read_sql(sql, self._conn))

    def overlap(
        self,
        table_a: str,
        column_a: str,
        table_b: str,
        column_b: str,
        schema: Optional[str] = None,
    ) -> OverlapResult:
        sql = build_overlap_sql(self._schema(schema), table_a, column_a, table_b, column_b)
        with self._cursor() as cursor:
            cursor.execute(sql)
            total, matching = cursor.fetchone()

        total = int(total or 0)
        matching = int(matching or 0)
        return OverlapResult(
            total_values=total,
            matching_values=matching,
            overlap_percentage=(matching * 100.0 / total) if total else 0.0,
        )

    def register_tables(
        self,
        store: MetadataStore,
        database_id: str,
        schema: str,
        tables: Optional[List[str]] = None,
        select: bool = True,
    ) -> List[TableRecord]:
        """Create table and column records for the schema's tables."""
        wanted = {t.upper() for t in tables} if tables is not None else None
        created = []

        for info in self.get_tables(schema):
            if wanted is not None and info["name"].upper() not in wanted:
                continue

            columns = self.get_columns(schema, info["name"])
            row_count = info["row_count"] or 0
            table = store.create_table(
                database_id=database_id,
                name=info["name"],
                schema=schema.upper(),
                row_count=row_count,
                column_count=len(columns),
                is_selected=select,
                sample_size=default_sample_size(row_count),
            )
            for col in columns:
                store.create_column(
                    table_id=table.id,
                    name=col["name"],
                    data_type=col["data_type"],
                    is_nullable=col["nullable"],
                )
            created.append(table)

        logger.info(f"Registered {len(created)} tables from {schema.upper()}")
        return created
