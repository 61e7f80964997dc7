"""
Operations Layer - Declarative Schema Edits and the Batch Applier
"""

from schema_studio.operations.models import (
    AddColumn,
    AlterColumn,
    BatchResult,
    ColumnInput,
    ColumnPatch,
    CreateTable,
    DropColumn,
    DropTable,
    Operation,
    OperationResult,
    OperationStatus,
    RenameTable,
)
from schema_studio.operations.applier import OperationApplier, apply_operations

__all__ = [
    # Operations
    "AddColumn",
    "AlterColumn",
    "CreateTable",
    "DropColumn",
    "DropTable",
    "Operation",
    "RenameTable",
    # Column payloads
    "ColumnInput",
    "ColumnPatch",
    # Results
    "BatchResult",
    "OperationResult",
    "OperationStatus",
    # Applier
    "OperationApplier",
    "apply_operations",
]
