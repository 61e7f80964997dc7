"""
Store - Canonical Schema State with Linear Undo/Redo

The SchemaStore owns one Snapshot and the History of operations that
produced it. It is the single writer: every mutation goes through the
OperationApplier and is committed here, one History Entry per successful
operation.
-----------------------------------------------

The History is a list of entries with a cursor:

    entries:  [e0, e1, e2, e3]
    cursor:            ^ 2      -> e0, e1 undoable; e2, e3 redoable

- commit() truncates everything at/after the cursor, appends, and moves the
  cursor to the end.
- undo() moves the cursor back one entry and restores that entry's `before`.
- redo() re-applies the entry at the cursor's `after` and moves forward.
- clear_history() drops all entries without touching the Snapshot.

Readers never get the internal Snapshot, only copies of it.
"""

import logging
from typing import Callable, Iterable, List, Optional, Tuple

from ..domain.models import Snapshot, Table, clone_snapshot, clone_table
from ..operations.applier import OperationApplier
from ..operations.models import BatchResult, Operation, OperationAction
from .models import HistoryEntry

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[Snapshot], None]

DEFAULT_MAX_HISTORY_ENTRIES = 100


class SchemaStore:
    def __init__(
        self,
        snapshot: Optional[Snapshot] = None,
        applier: Optional[OperationApplier] = None,
        max_entries: Optional[int] = DEFAULT_MAX_HISTORY_ENTRIES,
    ):
        self._snapshot: Snapshot = clone_snapshot(snapshot or {})
        self._applier = applier or OperationApplier()
        self._max_entries = max_entries
        self._entries: List[HistoryEntry] = []
        self._cursor = 0
        self._listeners: List[SnapshotListener] = []

    # ==========================================================================
    # Reading
    # ==========================================================================

    @property
    def snapshot(self) -> Snapshot:
        """Independent copy of the latest committed Snapshot."""
        return clone_snapshot(self._snapshot)

    @property
    def entries(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Registers a listener called with a fresh Snapshot copy after every
        change. Returns a callable that unsubscribes it.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ==========================================================================
    # Mutation
    # ==========================================================================

    def apply(self, operations: Iterable[Operation]) -> BatchResult:
        """
        Runs a batch through the Applier, commits the resulting Snapshot and
        records one History Entry per successful operation that changed a
        table, in batch order.
        """
        batch = self._applier.apply(self._snapshot, operations)
        self._snapshot = clone_snapshot(batch.snapshot)

        for result in batch.results:
            # Edits that leave the table unchanged are not undoable steps
            if result.ok and result.before != result.after:
                self.commit(
                    action=result.action,
                    table_id=result.table_id,
                    before=result.before,
                    after=result.after,
                    description=result.detail,
                    previous_table_id=result.previous_table_id,
                    displaced=result.displaced,
                )

        logger.info(
            f"Applied batch of {len(batch.results)} operations "
            f"({sum(1 for r in batch.results if r.ok)} succeeded)"
        )
        self._notify()
        return batch

    def commit(
        self,
        action: OperationAction,
        table_id: str,
        before: Optional[Table],
        after: Optional[Table],
        description: str,
        previous_table_id: Optional[str] = None,
        displaced: Optional[Table] = None,
    ) -> HistoryEntry:
        """
        Pushes one History Entry for an edit that has already been applied to
        the Snapshot. Redoable entries are discarded.
        """
        entry = HistoryEntry(
            action=action,
            table_id=table_id,
            previous_table_id=previous_table_id or table_id,
            before=clone_table(before),
            after=clone_table(after),
            displaced=clone_table(displaced),
            description=description,
        )

        del self._entries[self._cursor:]
        self._entries.append(entry)

        if self._max_entries is not None:
            overflow = len(self._entries) - self._max_entries
            if overflow > 0:
                del self._entries[:overflow]

        self._cursor = len(self._entries)
        return entry

    def load(self, snapshot: Snapshot) -> None:
        """Replaces the Snapshot wholesale (e.g. on import) and clears history."""
        self._snapshot = clone_snapshot(snapshot)
        self._entries.clear()
        self._cursor = 0
        logger.info(f"Loaded snapshot with {len(snapshot)} tables")
        self._notify()

    # ==========================================================================
    # History navigation
    # ==========================================================================

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries)

    def undo(self) -> bool:
        if not self.can_undo():
            return False

        self._cursor -= 1
        entry = self._entries[self._cursor]

        if entry.after is not None:
            self._snapshot.pop(entry.table_id, None)
        if entry.before is not None:
            self._snapshot[entry.previous_table_id] = clone_table(entry.before)
        if entry.displaced is not None:
            self._snapshot[entry.table_id] = clone_table(entry.displaced)

        logger.debug(f"Undo: {entry.description}")
        self._notify()
        return True

    def redo(self) -> bool:
        if not self.can_redo():
            return False

        entry = self._entries[self._cursor]

        if entry.before is not None:
            self._snapshot.pop(entry.previous_table_id, None)
        if entry.after is not None:
            self._snapshot[entry.table_id] = clone_table(entry.after)

        self._cursor += 1
        logger.debug(f"Redo: {entry.description}")
        self._notify()
        return True

    def undo_label(self) -> Optional[str]:
        if not self.can_undo():
            return None
        return self._entries[self._cursor - 1].description

    def redo_label(self) -> Optional[str]:
        if not self.can_redo():
            return None
        return self._entries[self._cursor].description

    def clear_history(self) -> None:
        self._entries.clear()
        self._cursor = 0
        logger.info("History cleared")

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.snapshot)
