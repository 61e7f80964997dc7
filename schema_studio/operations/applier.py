"""
Applier - Batch Schema Transformation

The OperationApplier is a pure transformation: it takes a Snapshot and an
ordered batch of Operations and produces a new Snapshot plus one
OperationResult per operation.
-----------------------------------------------

Batch semantics:
1. The input Snapshot is deep-copied before anything is applied. The caller's
   Snapshot is never mutated, so it stays valid for history diffing.
2. Operations apply strictly in list order, each seeing the effects of the
   ones before it.
3. A failing operation does not abort the batch. It is recorded as an error
   result and the next operation runs against the latest state. `ok` is False
   if any operation failed.

Nothing in here raises for a bad operation; not-found conditions are data.
"""

import logging
from typing import Iterable, List, assert_never

from ..domain.models import Snapshot, Table, clone_snapshot, clone_table, namespace_of
from .models import (
    AddColumn,
    AlterColumn,
    BatchResult,
    CreateTable,
    DropColumn,
    DropTable,
    Operation,
    OperationResult,
    OperationStatus,
    RenameTable,
)

logger = logging.getLogger(__name__)


class OperationApplier:

    def apply(self, snapshot: Snapshot, operations: Iterable[Operation]) -> BatchResult:
        tables = clone_snapshot(snapshot)
        results: List[OperationResult] = []

        for operation in operations:
            result = self._apply_one(tables, operation)
            if not result.ok:
                logger.info(f"{result.action} failed: {result.detail}")
            results.append(result)

        return BatchResult(
            ok=all(result.ok for result in results),
            snapshot=tables,
            results=results,
        )

    def _apply_one(self, tables: Snapshot, operation: Operation) -> OperationResult:
        match operation:
            case CreateTable():
                return self._create_table(tables, operation)
            case DropTable():
                return self._drop_table(tables, operation)
            case RenameTable():
                return self._rename_table(tables, operation)
            case AddColumn():
                return self._add_column(tables, operation)
            case DropColumn():
                return self._drop_column(tables, operation)
            case AlterColumn():
                return self._alter_column(tables, operation)
            case _:
                assert_never(operation)

    # ==========================================================================
    # Table operations
    # ==========================================================================

    def _create_table(self, tables: Snapshot, op: CreateTable) -> OperationResult:
        existing = tables.get(op.table_id)
        columns = [column.normalize() for column in op.columns]

        table = Table(
            title=op.table_id,
            namespace=namespace_of(op.table_id),
            columns=columns,
            is_view=op.is_view,
            # Recreating a table must not make its node jump on the canvas
            position=existing.position if existing else None,
        )
        tables[op.table_id] = table

        kind = "view" if op.is_view else "table"
        return _success(
            op.action,
            op.table_id,
            f"Created {kind} '{op.table_id}' with {len(columns)} columns",
            before=existing,
            after=table,
        )

    def _drop_table(self, tables: Snapshot, op: DropTable) -> OperationResult:
        existing = tables.pop(op.table_id, None)
        if existing is None:
            return _table_not_found(op.action, op.table_id)

        return _success(
            op.action,
            op.table_id,
            f"Dropped table '{op.table_id}'",
            before=existing,
            after=None,
        )

    def _rename_table(self, tables: Snapshot, op: RenameTable) -> OperationResult:
        source = tables.get(op.from_table_id)
        if source is None:
            return _table_not_found(op.action, op.from_table_id)

        # FK strings in other tables still point at the old identifier
        renamed = source.model_copy(
            update={"title": op.to_table_id, "namespace": namespace_of(op.to_table_id)},
            deep=True,
        )
        del tables[op.from_table_id]
        displaced = tables.get(op.to_table_id)
        tables[op.to_table_id] = renamed

        return _success(
            op.action,
            op.to_table_id,
            f"Renamed table '{op.from_table_id}' to '{op.to_table_id}'",
            before=source,
            after=renamed,
            previous_table_id=op.from_table_id,
            displaced=displaced,
        )

    # ==========================================================================
    # Column operations
    # ==========================================================================

    def _add_column(self, tables: Snapshot, op: AddColumn) -> OperationResult:
        table = tables.get(op.table_id)
        if table is None:
            return _table_not_found(op.action, op.table_id)

        before = clone_table(table)
        column = op.column.normalize()
        table.columns.append(column)

        return _success(
            op.action,
            op.table_id,
            f"Added column '{column.title}' to '{op.table_id}'",
            before=before,
            after=table,
        )

    def _drop_column(self, tables: Snapshot, op: DropColumn) -> OperationResult:
        table = tables.get(op.table_id)
        if table is None:
            return _table_not_found(op.action, op.table_id)

        index = table.find_column(op.column_name)
        if index is None:
            return _column_not_found(op.action, op.table_id, op.column_name)

        before = clone_table(table)
        del table.columns[index]

        return _success(
            op.action,
            op.table_id,
            f"Dropped column '{op.column_name}' from '{op.table_id}'",
            before=before,
            after=table,
        )

    def _alter_column(self, tables: Snapshot, op: AlterColumn) -> OperationResult:
        table = tables.get(op.table_id)
        if table is None:
            return _table_not_found(op.action, op.table_id)

        index = table.find_column(op.column_name)
        if index is None:
            return _column_not_found(op.action, op.table_id, op.column_name)

        before = clone_table(table)
        changes = op.patch.changes()
        table.columns[index] = table.columns[index].model_copy(update=changes, deep=True)

        changed = ", ".join(sorted(changes)) or "nothing"
        return _success(
            op.action,
            op.table_id,
            f"Altered column '{op.column_name}' in '{op.table_id}' ({changed})",
            before=before,
            after=table,
        )


# ==============================================================================
# Result helpers
# ==============================================================================

def _success(action, table_id, detail, before, after, previous_table_id=None, displaced=None) -> OperationResult:
    # Later operations in the batch keep mutating the working tables, so the
    # captured states are copied now.
    return OperationResult(
        action=action,
        table_id=table_id,
        status=OperationStatus.SUCCESS,
        detail=detail,
        previous_table_id=previous_table_id or table_id,
        before=clone_table(before),
        after=clone_table(after),
        displaced=clone_table(displaced),
    )


def _table_not_found(action, table_id) -> OperationResult:
    return OperationResult(
        action=action,
        table_id=table_id,
        status=OperationStatus.ERROR,
        detail=f"Table '{table_id}' not found",
    )


def _column_not_found(action, table_id, column_name) -> OperationResult:
    return OperationResult(
        action=action,
        table_id=table_id,
        status=OperationStatus.ERROR,
        detail=f"Column '{column_name}' not found in '{table_id}'",
    )


def apply_operations(snapshot: Snapshot, operations: Iterable[Operation]) -> BatchResult:
    """Module-level shortcut for OperationApplier().apply()."""
    return OperationApplier().apply(snapshot, operations)
