import pytest

from schema_studio.domain.models import Column, Position, Table
from schema_studio.state.store import SchemaStore


def make_column(title: str, format_: str = "integer", **overrides) -> Column:
    base = dict(title=title, type=format_, format=format_)
    base.update(overrides)
    return Column(**base)


@pytest.fixture
def users_orders():
    """A two-table schema where orders.user_id references users.id."""
    return {
        "users": Table(
            title="users",
            columns=[
                make_column("id", pk=True, required=True),
                make_column("email", "text", required=True),
            ],
            position=Position(x=10, y=20),
        ),
        "orders": Table(
            title="orders",
            columns=[
                make_column("id", pk=True, required=True),
                make_column("user_id", fk="users.id", required=True),
                make_column("total", "numeric"),
            ],
        ),
    }


@pytest.fixture
def store(users_orders) -> SchemaStore:
    return SchemaStore(snapshot=users_orders)
