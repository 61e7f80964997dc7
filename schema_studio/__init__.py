"""
Schema Studio

A schema editing backend. Declarative operations edit a Snapshot of tables
through a store with linear undo/redo; schemas can be imported from a live
Postgres database, exported as DDL, and edited by a tool-calling assistant.
"""

from schema_studio.domain import (
    Column,
    Position,
    Snapshot,
    Table,
)
from schema_studio.operations import (
    BatchResult,
    OperationApplier,
    OperationResult,
)
from schema_studio.state import (
    HistoryEntry,
    SchemaStore,
    Workspace,
)
from schema_studio.export import generate_sql_schema
from schema_studio.importing import tables_from_definitions

__all__ = [
    # Domain Layer
    "Column",
    "Position",
    "Snapshot",
    "Table",
    # Operations
    "BatchResult",
    "OperationApplier",
    "OperationResult",
    # State Layer
    "HistoryEntry",
    "SchemaStore",
    "Workspace",
    # Import / Export
    "generate_sql_schema",
    "tables_from_definitions",
]
