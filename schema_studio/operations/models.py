"""
Operations - Declarative Schema Edits

This module defines the closed set of schema operations the Applier
understands, the column structures they carry, and the per-operation result
records the Applier produces.

Operations are discriminated on `action`. They double as the tool-call
boundary: a JSON payload is validated into one of these models before it can
reach the Applier, so malformed input is rejected at the boundary rather than
reported as a per-operation error.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..domain.models import Column, Snapshot, Table

DEFAULT_COLUMN_TYPE = "string"

# Patch fields whose model type does not accept None. An explicit null on one
# of these is ignored instead of erasing the value.
_NON_NULLABLE_PATCH_FIELDS = {"title", "type", "format", "required", "pk"}


class _BoundaryModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")


class ColumnInput(_BoundaryModel):
    """
    Column definition as submitted by the UI or the AI model.

    Either `type` or `format` may be omitted; `normalize()` back-fills the
    missing one from the other.
    """
    title: str = Field(..., min_length=1, description="Column name")
    type: Optional[str] = None
    format: Optional[str] = None
    default: Optional[Any] = None
    required: Optional[bool] = None
    pk: Optional[bool] = None
    fk: Optional[str] = Field(
        None,
        description='Foreign key reference, "table.column" or "schema.table.column" (e.g. "users.id")',
    )
    enum_values: Optional[List[str]] = Field(None, alias="enumValues")
    enum_type_name: Optional[str] = Field(None, alias="enumTypeName")
    comment: Optional[str] = None

    def normalize(self) -> Column:
        type_ = self.type or self.format or DEFAULT_COLUMN_TYPE
        format_ = self.format or self.type or DEFAULT_COLUMN_TYPE
        return Column(
            title=self.title,
            type=type_,
            format=format_,
            default=self.default,
            required=bool(self.required),
            pk=bool(self.pk),
            fk=self.fk,
            enum_values=list(self.enum_values) if self.enum_values is not None else None,
            enum_type_name=self.enum_type_name,
            comment=self.comment,
        )


class ColumnPatch(_BoundaryModel):
    """
    Partial update for a Column. Only fields explicitly present in the payload
    are applied; `fk: null` clears a foreign key.
    """
    title: Optional[str] = Field(None, min_length=1)
    type: Optional[str] = None
    format: Optional[str] = None
    default: Optional[Any] = None
    required: Optional[bool] = None
    pk: Optional[bool] = None
    fk: Optional[str] = None
    enum_values: Optional[List[str]] = Field(None, alias="enumValues")
    enum_type_name: Optional[str] = Field(None, alias="enumTypeName")
    comment: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        """
        Explicitly set fields, keyed by Column attribute name.

        A format without a type (or the reverse) is mirrored onto the missing
        field, the same rule ColumnInput.normalize() applies.
        """
        changes = {
            name: value
            for name, value in self.model_dump(exclude_unset=True).items()
            if not (value is None and name in _NON_NULLABLE_PATCH_FIELDS)
        }
        if "format" in changes and "type" not in changes:
            changes["type"] = changes["format"]
        elif "type" in changes and "format" not in changes:
            changes["format"] = changes["type"]
        return changes


# =============================================================================
# OPERATIONS
# =============================================================================

class CreateTable(_BoundaryModel):
    action: Literal["create_table"] = "create_table"
    table_id: str = Field(..., min_length=1, alias="tableId")
    columns: List[ColumnInput] = Field(default_factory=list)
    is_view: bool = Field(False, alias="isView")


class DropTable(_BoundaryModel):
    action: Literal["drop_table"] = "drop_table"
    table_id: str = Field(..., min_length=1, alias="tableId")


class RenameTable(_BoundaryModel):
    action: Literal["rename_table"] = "rename_table"
    from_table_id: str = Field(..., min_length=1, alias="fromTableId")
    to_table_id: str = Field(..., min_length=1, alias="toTableId")


class AddColumn(_BoundaryModel):
    action: Literal["add_column"] = "add_column"
    table_id: str = Field(..., min_length=1, alias="tableId")
    column: ColumnInput


class DropColumn(_BoundaryModel):
    action: Literal["drop_column"] = "drop_column"
    table_id: str = Field(..., min_length=1, alias="tableId")
    column_name: str = Field(..., min_length=1, alias="columnName")


class AlterColumn(_BoundaryModel):
    action: Literal["alter_column"] = "alter_column"
    table_id: str = Field(..., min_length=1, alias="tableId")
    column_name: str = Field(..., min_length=1, alias="columnName")
    patch: ColumnPatch


Operation = Annotated[
    Union[CreateTable, DropTable, RenameTable, AddColumn, DropColumn, AlterColumn],
    Field(discriminator="action"),
]

OperationAction = Literal[
    "create_table",
    "drop_table",
    "rename_table",
    "add_column",
    "drop_column",
    "alter_column",
]


# =============================================================================
# RESULTS
# =============================================================================

class OperationStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class OperationResult(BaseModel):
    """
    Outcome of one operation within a batch.

    Successful results also carry the table state captured around the edit.
    `table_id` is the key the table lives under afterwards; `previous_table_id`
    is the key it lived under before (they differ only for renames). A rename onto
    an existing key records the table it replaced in `displaced`. These
    captured fields feed the history and are not serialized to clients.
    """
    model_config = ConfigDict(populate_by_name=True)

    action: OperationAction
    table_id: Optional[str] = Field(None, alias="tableId")
    status: OperationStatus
    detail: str

    previous_table_id: Optional[str] = Field(None, exclude=True)
    before: Optional[Table] = Field(None, exclude=True)
    after: Optional[Table] = Field(None, exclude=True)
    displaced: Optional[Table] = Field(None, exclude=True)

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.SUCCESS


class BatchResult(BaseModel):
    ok: bool
    snapshot: Snapshot
    results: List[OperationResult] = Field(default_factory=list)
    applied_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
