import pytest

from schema_studio.importing import tables_from_definitions
from schema_studio.infrastructure.database.introspection import (
    ColumnInfo,
    RelationInfo,
    build_schema_description,
    introspect_postgres,
    map_pg_type,
    to_definition_key,
    to_sqlalchemy_url,
)
from schema_studio.services.exceptions import (
    EmptySchemaError,
    IntrospectionError,
    InvalidConnectionStringError,
)


def make_relations():
    return [
        RelationInfo(
            schema="public",
            name="users",
            columns=[
                ColumnInfo("id", "integer", not_null=True, default="nextval('users_id_seq'::regclass)"),
                ColumnInfo("email", "varchar(255)", not_null=True),
            ],
            primary_key=["id"],
        ),
        RelationInfo(
            schema="billing",
            name="invoices",
            columns=[
                ColumnInfo("id", "bigint", not_null=True),
                ColumnInfo("user_id", "integer"),
                ColumnInfo("account_id", "integer"),
            ],
            primary_key=["id"],
            foreign_keys={
                "user_id": [("public", "users", "id")],
                "account_id": [("billing", "accounts", "id")],
            },
        ),
        RelationInfo(
            schema="public",
            name="active_users",
            is_view=True,
            columns=[ColumnInfo("id", "integer")],
        ),
        RelationInfo(schema="pg_catalog", name="pg_class", columns=[ColumnInfo("oid", "oid")]),
    ]


@pytest.mark.parametrize(
    "pg_type, expected",
    [
        ("integer", "number"),
        ("bigint", "number"),
        ("numeric(10,2)", "number"),
        ("double precision", "number"),
        ("real", "number"),
        ("boolean", "boolean"),
        ("jsonb", "object"),
        ("timestamp with time zone", "string"),
        ("uuid", "string"),
        ("text", "string"),
    ],
)
def test_map_pg_type(pg_type, expected):
    assert map_pg_type(pg_type) == {"type": expected, "format": pg_type}


def test_definition_keys_omit_public_schema():
    assert to_definition_key("public", "users") == "users"
    assert to_definition_key("billing", "invoices") == "billing.invoices"


def test_description_shape():
    description = build_schema_description(make_relations())

    assert set(description["definitions"]) == {"users", "billing.invoices", "active_users"}
    assert description["metadata"] == {"tableCount": 3}
    assert description["paths"]["/users"] == {"get": {}, "post": {}, "patch": {}, "delete": {}}
    assert description["paths"]["/active_users"] == {"get": {}}


def test_keys_are_described_in_column_descriptions():
    definitions = build_schema_description(make_relations())["definitions"]

    users = definitions["users"]
    assert users["required"] == ["id", "email"]
    assert users["properties"]["id"]["description"] == "<pk/>"
    assert users["properties"]["id"]["default"] == "nextval('users_id_seq'::regclass)"
    assert "description" not in users["properties"]["email"]

    invoices = definitions["billing.invoices"]["properties"]
    assert invoices["user_id"]["description"] == "`users.id`"
    assert invoices["account_id"]["description"] == "`billing.accounts.id`"
    assert "required" not in definitions["active_users"]


def test_description_round_trips_through_importer():
    description = build_schema_description(make_relations())

    tables = tables_from_definitions(description["definitions"], description["paths"])

    assert tables["active_users"].is_view is True
    invoices = tables["billing.invoices"]
    assert [c.fk for c in invoices.columns] == [None, "users.id", "billing.accounts.id"]
    assert invoices.columns[0].pk is True


def test_only_system_relations_is_an_empty_schema():
    relations = [RelationInfo(schema="information_schema", name="tables", columns=[ColumnInfo("x", "text")])]

    with pytest.raises(EmptySchemaError):
        build_schema_description(relations)


@pytest.mark.parametrize("connection_string", ["mysql://localhost/db", "localhost:5432", ""])
def test_non_postgres_connection_strings_are_rejected(connection_string):
    with pytest.raises(InvalidConnectionStringError):
        introspect_postgres(connection_string)


def test_invalid_connection_string_is_an_introspection_error():
    assert issubclass(InvalidConnectionStringError, IntrospectionError)
    assert issubclass(EmptySchemaError, IntrospectionError)


def test_urls_are_rewritten_for_the_psycopg_driver():
    assert to_sqlalchemy_url("postgres://u:p@host:5432/db") == "postgresql+psycopg://u:p@host:5432/db"
    assert to_sqlalchemy_url("postgresql://host/db") == "postgresql+psycopg://host/db"
