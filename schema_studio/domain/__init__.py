"""
Domain Layer - Schema Data Models

Defines the Tables, Columns and Snapshot the editor operates on.
"""

from schema_studio.domain.models import (
    Column,
    Position,
    Snapshot,
    Table,
    clone_snapshot,
    clone_table,
    namespace_of,
)

__all__ = [
    "Column",
    "Position",
    "Snapshot",
    "Table",
    "clone_snapshot",
    "clone_table",
    "namespace_of",
]
