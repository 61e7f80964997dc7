import pytest

from schema_studio.domain.models import Table
from schema_studio.operations import (
    AddColumn,
    AlterColumn,
    ColumnInput,
    ColumnPatch,
    CreateTable,
    DropTable,
    RenameTable,
)
from schema_studio.state.store import SchemaStore


def add(table_id: str, title: str) -> AddColumn:
    return AddColumn(table_id=table_id, column=ColumnInput(title=title))


def test_new_store_has_nothing_to_undo_or_redo():
    store = SchemaStore()

    assert store.snapshot == {}
    assert not store.can_undo()
    assert not store.can_redo()
    assert store.undo() is False
    assert store.redo() is False
    assert store.undo_label() is None
    assert store.redo_label() is None


def test_each_successful_operation_is_one_history_entry(store):
    batch = store.apply([
        add("users", "name"),
        DropTable(table_id="missing"),
        add("orders", "note"),
    ])

    assert batch.ok is False
    assert len(store.entries) == 2
    assert store.cursor == 2
    assert [e.action for e in store.entries] == ["add_column", "add_column"]


def test_undo_redo_round_trip(store, users_orders):
    store.apply([CreateTable(table_id="tags", columns=[ColumnInput(title="id")])])
    store.apply([add("users", "name")])
    store.apply([DropTable(table_id="orders")])
    final = store.snapshot

    while store.can_undo():
        store.undo()
    assert store.snapshot == users_orders
    assert store.cursor == 0

    while store.can_redo():
        store.redo()
    assert store.snapshot == final
    assert store.cursor == 3


def test_commit_after_undo_discards_redo_entries(store):
    store.apply([add("users", "a")])
    store.apply([add("users", "b")])
    store.undo()

    assert store.can_redo()
    store.apply([add("users", "c")])

    assert not store.can_redo()
    assert [e.description for e in store.entries] == [
        "Added column 'a' to 'users'",
        "Added column 'c' to 'users'",
    ]
    assert [c.title for c in store.snapshot["users"].columns] == ["id", "email", "a", "c"]


def test_labels_describe_next_undo_and_redo(store):
    store.apply([DropTable(table_id="orders")])

    assert store.undo_label() == "Dropped table 'orders'"
    store.undo()
    assert store.undo_label() is None
    assert store.redo_label() == "Dropped table 'orders'"


def test_undo_restores_dropped_table(store, users_orders):
    store.apply([DropTable(table_id="orders")])
    assert "orders" not in store.snapshot

    store.undo()
    assert store.snapshot["orders"] == users_orders["orders"]


def test_undo_of_create_removes_table(store):
    store.apply([CreateTable(table_id="tags")])
    store.undo()

    assert "tags" not in store.snapshot


def test_undo_of_rename_restores_old_key(store, users_orders):
    store.apply([RenameTable(from_table_id="users", to_table_id="accounts")])
    store.undo()

    assert "accounts" not in store.snapshot
    assert store.snapshot["users"] == users_orders["users"]

    store.redo()
    assert "users" not in store.snapshot
    assert store.snapshot["accounts"].title == "accounts"


def test_undo_of_alter_column_restores_previous_column(store):
    store.apply([
        AlterColumn(table_id="orders", column_name="user_id", patch=ColumnPatch.model_validate({"fk": None})),
    ])
    assert store.snapshot["orders"].columns[1].fk is None

    store.undo()
    assert store.snapshot["orders"].columns[1].fk == "users.id"


def test_clear_history_keeps_snapshot(store):
    store.apply([add("users", "name")])
    before = store.snapshot

    store.clear_history()

    assert store.entries == ()
    assert not store.can_undo()
    assert store.snapshot == before


def test_load_replaces_snapshot_and_clears_history(store):
    store.apply([add("users", "name")])

    store.load({"tags": Table(title="tags")})

    assert list(store.snapshot) == ["tags"]
    assert store.entries == ()


def test_snapshot_is_a_copy(store):
    snapshot = store.snapshot
    snapshot["users"].columns.clear()
    del snapshot["orders"]

    assert len(store.snapshot["users"].columns) == 2
    assert "orders" in store.snapshot


def test_history_entries_are_isolated_from_later_edits(store):
    store.apply([add("users", "a")])
    store.apply([add("users", "b")])

    first = store.entries[0]
    assert [c.title for c in first.after.columns] == ["id", "email", "a"]


def test_subscribers_receive_copies_until_unsubscribed(store):
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.apply([add("users", "a")])
    store.undo()
    unsubscribe()
    store.redo()

    assert len(seen) == 2
    assert [c.title for c in seen[0]["users"].columns][-1] == "a"
    seen[0]["users"].columns.clear()
    assert store.snapshot["users"].columns


@pytest.mark.parametrize("max_entries", [1, 2])
def test_history_is_bounded_when_configured(users_orders, max_entries):
    store = SchemaStore(snapshot=users_orders, max_entries=max_entries)

    store.apply([add("users", "a"), add("users", "b"), add("users", "c")])

    assert len(store.entries) == max_entries
    assert store.cursor == max_entries
    assert store.entries[-1].description == "Added column 'c' to 'users'"


def test_default_history_bound_keeps_the_latest_hundred():
    store = SchemaStore(snapshot={"users": Table(title="users")})

    store.apply([add("users", f"c{i}") for i in range(101)])

    assert len(store.entries) == 100
    assert store.entries[0].description == "Added column 'c1' to 'users'"


def test_history_bound_can_be_disabled():
    store = SchemaStore(snapshot={"users": Table(title="users")}, max_entries=None)

    store.apply([add("users", f"c{i}") for i in range(101)])

    assert len(store.entries) == 101


def test_undo_of_rename_onto_existing_table_restores_both(store, users_orders):
    batch = store.apply([RenameTable(from_table_id="users", to_table_id="orders")])

    assert batch.ok
    assert list(store.snapshot) == ["orders"]
    assert [c.title for c in store.snapshot["orders"].columns] == ["id", "email"]

    store.undo()
    assert sorted(store.snapshot) == ["orders", "users"]
    assert store.snapshot["users"] == users_orders["users"]
    assert store.snapshot["orders"] == users_orders["orders"]

    store.redo()
    assert list(store.snapshot) == ["orders"]
    assert [c.title for c in store.snapshot["orders"].columns] == ["id", "email"]


def test_edits_that_change_nothing_are_not_recorded(store, users_orders):
    batch = store.apply([
        AlterColumn(table_id="users", column_name="email", patch=ColumnPatch()),
        RenameTable(from_table_id="orders", to_table_id="orders"),
    ])

    assert batch.ok
    assert store.entries == ()
    assert not store.can_undo()
    assert store.snapshot == users_orders
