"""
Domain Layer - Schema Data Models

This module defines the core domain model of the editor: Tables, their
Columns, and the Snapshot that maps table identifiers to Tables.

The field names on the wire follow the canvas client (camelCase for enum
metadata, `schema` for the namespace). Python code uses the snake_case names.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Position(BaseModel):
    """Canvas coordinates. Owned by the rendering layer, never read by the core."""
    x: float = 0
    y: float = 0


class Column(BaseModel):
    """
    A single column of a Table.

    Attributes:
        title: Column name. Unique within the owning table by convention only.
        type: Semantic type (e.g. "integer", "string", "enum").
        format: Display/DDL format. May differ from type, e.g. format "enum"
            with a custom enum_type_name.
        required: NOT NULL.
        pk: Part of the primary key.
        fk: Foreign key reference, "schema.table.column" or "table.column".
            Never validated against the Snapshot.
        default: Default value expression.
        enum_values: Allowed values when the column is an enum.
        enum_type_name: Name of the enum type (e.g. "user_status").
        comment: Free-text note.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str
    type: str
    format: str
    required: bool = False
    pk: bool = False
    fk: Optional[str] = None
    default: Optional[Any] = None
    enum_values: Optional[List[str]] = Field(None, alias="enumValues")
    enum_type_name: Optional[str] = Field(None, alias="enumTypeName")
    comment: Optional[str] = None


class Table(BaseModel):
    """
    A table (or view) on the canvas.

    The table identifier is its key in the Snapshot; `title` mirrors it.
    Renaming a table changes its key.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str
    namespace: Optional[str] = Field(None, alias="schema")
    columns: List[Column] = Field(default_factory=list)
    is_view: bool = False
    position: Optional[Position] = None
    color: Optional[str] = None
    comment: Optional[str] = None

    def find_column(self, title: str) -> Optional[int]:
        """Index of the first column with exactly this title, or None."""
        for index, column in enumerate(self.columns):
            if column.title == title:
                return index
        return None


# Table identifier -> Table
Snapshot = Dict[str, Table]


def namespace_of(table_id: str) -> Optional[str]:
    """Text before the last '.' of a table identifier, if any."""
    if "." not in table_id:
        return None
    return table_id.rsplit(".", 1)[0]


def clone_table(table: Optional[Table]) -> Optional[Table]:
    if table is None:
        return None
    return table.model_copy(deep=True)


def clone_snapshot(snapshot: Snapshot) -> Snapshot:
    """Fully independent copy; mutating it never touches the original."""
    return {table_id: table.model_copy(deep=True) for table_id, table in snapshot.items()}
