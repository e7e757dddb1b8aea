"""
Import of declared (catalog) foreign keys into the metadata store.

Declarations arrive by table and column name, either from a database
catalog or from a user-maintained YAML file, and are resolved to record ids
here before the orchestrator treats them as authoritative.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from schema_atlas.models import DeclaredRelationship
from schema_atlas.storage.memory import InMemoryMetadataStore

logger = logging.getLogger(__name__)


def load_relationships_file(path: Path) -> List[Dict[str, Any]]:
    """
    Load declared relationships from a YAML file.

    Expected layout:

        relationships:
          - name: fk_orders_customer
            from_table: orders
            from_column: customer_id
            to_table: customers
            to_column: id
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Relationships file not found: {path}")
        return []

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    definitions = data.get("relationships", [])
    logger.info(f"Loaded {len(definitions)} relationships from {path}")
    return definitions


def register_declared_relationships(
    store: InMemoryMetadataStore,
    database_id: str,
    definitions: List[Dict[str, Any]],
) -> int:
    """
    Resolve name-based declarations and register them with the store.

    Declarations whose tables or columns are not cataloged are skipped.

    Returns:
        Number of declarations registered
    """
    registered = 0
    for definition in definitions:
        from_table = store.find_table(database_id, definition["from_table"])
        to_table = store.find_table(database_id, definition["to_table"])
        if not from_table or not to_table:
            logger.debug(f"Skipping declaration with uncataloged table: {definition}")
            continue

        from_column = store.find_column(from_table.id, definition["from_column"])
        to_column = store.find_column(to_table.id, definition["to_column"])
        if not from_column or not to_column:
            logger.warning(
                f"Columns not found for declared relationship: "
                f"{definition['from_table']}.{definition['from_column']} -> "
                f"{definition['to_table']}.{definition['to_column']}"
            )
            continue

        store.add_declared_relationship(DeclaredRelationship(
            constraint_name=definition.get(
                "name", f"fk_{from_table.name}_{from_column.name}".lower()
            ),
            from_table_id=from_table.id,
            from_column_id=from_column.id,
            to_table_id=to_table.id,
            to_column_id=to_column.id,
        ))
        registered += 1

    logger.info(f"Registered {registered} of {len(definitions)} declared relationships")
    return registered
