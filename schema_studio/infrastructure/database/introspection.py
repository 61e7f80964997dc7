"""
Postgres Introspection.

Reads the tables, views and materialized views of a live Postgres database and
describes them in the OpenAPI-style shape the importer understands:

    {
      "definitions": {"<key>": {"type": "object", "properties": {...}, "required": [...]}},
      "paths": {"/<key>": {"get": {}, ...}},
      "metadata": {"tableCount": N}
    }

Reading goes through the SQLAlchemy inspector on a psycopg engine. Building the
description is a pure function over RelationInfo records so it can be used
without a database.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import CompileError, SQLAlchemyError

from ...config import settings
from ...services.exceptions import (
    EmptySchemaError,
    IntrospectionError,
    InvalidConnectionStringError,
)

logger = logging.getLogger(__name__)

EXCLUDED_SCHEMAS = frozenset({"pg_catalog", "information_schema", "pg_toast"})
DEFAULT_SCHEMA = "public"

TABLE_METHODS = ("get", "post", "patch", "delete")
VIEW_METHODS = ("get",)

_SUPPORTED_SCHEMES = ("postgres://", "postgresql://")


@dataclass
class ColumnInfo:
    name: str
    data_type: str
    not_null: bool = False
    default: Any = None


@dataclass
class RelationInfo:
    """One table or view as read from the catalog."""
    schema: str
    name: str
    is_view: bool = False
    columns: List[ColumnInfo] = field(default_factory=list)
    primary_key: List[str] = field(default_factory=list)
    # column name -> [(ref_schema, ref_table, ref_column)]
    foreign_keys: Dict[str, List[Tuple[str, str, str]]] = field(default_factory=dict)


# ==============================================================================
# Public API
# ==============================================================================

def introspect_postgres(connection_string: str) -> Dict[str, Any]:
    """
    Connects to the database, reads every non-system relation and returns its
    schema description.

    Raises:
        InvalidConnectionStringError: Not a postgres:// or postgresql:// URL.
        EmptySchemaError: The database has no user tables or views.
        IntrospectionError: Connecting or reading the catalog failed.
    """
    if not isinstance(connection_string, str) or not connection_string.startswith(_SUPPORTED_SCHEMES):
        raise InvalidConnectionStringError("Only Postgres connection strings are supported")

    try:
        engine = create_engine(
            to_sqlalchemy_url(connection_string),
            connect_args={"connect_timeout": settings.INTROSPECTION_CONNECT_TIMEOUT},
        )
    except (SQLAlchemyError, ValueError) as e:
        raise IntrospectionError(f"Invalid connection string: {e}") from e

    try:
        relations = read_relations(engine)
    except SQLAlchemyError as e:
        logger.error(f"Introspection failed: {e}")
        raise IntrospectionError(str(e)) from e
    finally:
        engine.dispose()

    description = build_schema_description(relations)
    logger.info(f"Introspected {description['metadata']['tableCount']} relation(s)")
    return description


def to_sqlalchemy_url(connection_string: str) -> str:
    """postgres://... -> postgresql+psycopg://..."""
    _, rest = connection_string.split("://", 1)
    return f"postgresql+psycopg://{rest}"


def to_definition_key(schema: str, table: str) -> str:
    return table if schema == DEFAULT_SCHEMA else f"{schema}.{table}"


def map_pg_type(pg_type: str) -> Dict[str, str]:
    """Maps a Postgres type name onto an OpenAPI {type, format} pair."""
    normalized = pg_type.lower()

    if any(token in normalized for token in ("int", "numeric", "decimal", "double", "real", "serial")):
        return {"type": "number", "format": pg_type}
    if "bool" in normalized:
        return {"type": "boolean", "format": pg_type}
    if "json" in normalized:
        return {"type": "object", "format": pg_type}
    if "array" in normalized:
        return {"type": "array", "format": pg_type}
    return {"type": "string", "format": pg_type}


# ==============================================================================
# Catalog reading
# ==============================================================================

def read_relations(engine: Engine) -> List[RelationInfo]:
    inspector = inspect(engine)
    relations: List[RelationInfo] = []

    for schema in sorted(inspector.get_schema_names()):
        if schema in EXCLUDED_SCHEMAS:
            continue

        views = set(inspector.get_view_names(schema=schema))
        views.update(inspector.get_materialized_view_names(schema=schema))
        names = set(inspector.get_table_names(schema=schema)) | views

        for name in sorted(names):
            relations.append(_read_relation(inspector, engine, schema, name, name in views))

    return relations


def _read_relation(inspector, engine: Engine, schema: str, name: str, is_view: bool) -> RelationInfo:
    relation = RelationInfo(schema=schema, name=name, is_view=is_view)

    for column in inspector.get_columns(name, schema=schema):
        relation.columns.append(
            ColumnInfo(
                name=column["name"],
                data_type=_type_text(column["type"], engine),
                not_null=not column.get("nullable", True),
                default=column.get("default"),
            )
        )

    if is_view:
        return relation

    pk = inspector.get_pk_constraint(name, schema=schema) or {}
    relation.primary_key = list(pk.get("constrained_columns") or [])

    for fk in inspector.get_foreign_keys(name, schema=schema):
        ref_schema = fk.get("referred_schema") or DEFAULT_SCHEMA
        pairs = zip(fk.get("constrained_columns") or [], fk.get("referred_columns") or [])
        for column_name, ref_column in pairs:
            relation.foreign_keys.setdefault(column_name, []).append(
                (ref_schema, fk["referred_table"], ref_column)
            )

    return relation


def _type_text(column_type, engine: Engine) -> str:
    try:
        return column_type.compile(dialect=engine.dialect).lower()
    except CompileError:
        return str(column_type).lower()


# ==============================================================================
# Description building
# ==============================================================================

def build_schema_description(relations: List[RelationInfo]) -> Dict[str, Any]:
    """
    Builds the schema description from catalog records.

    Raises:
        EmptySchemaError: No relation outside the system schemas.
    """
    definitions: Dict[str, Any] = {}
    paths: Dict[str, Any] = {}

    for relation in relations:
        if relation.schema in EXCLUDED_SCHEMAS:
            continue

        key = to_definition_key(relation.schema, relation.name)
        properties: Dict[str, Any] = {}
        required: List[str] = []

        for column in relation.columns:
            prop: Dict[str, Any] = dict(map_pg_type(column.data_type))
            if column.default is not None:
                prop["default"] = column.default

            description = _describe_keys(relation, column.name)
            if description:
                prop["description"] = description

            properties[column.name] = prop
            if column.not_null:
                required.append(column.name)

        definition: Dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            definition["required"] = required
        definitions[key] = definition

        methods = VIEW_METHODS if relation.is_view else TABLE_METHODS
        paths[f"/{key}"] = {method: {} for method in methods}

    if not definitions:
        raise EmptySchemaError("No tables or views found in the provided database")

    return {
        "definitions": definitions,
        "paths": paths,
        "metadata": {"tableCount": len(definitions)},
    }


def _describe_keys(relation: RelationInfo, column_name: str) -> str:
    # "<pk/> `schema.table.column`, `table.column`"
    parts = []
    if column_name in relation.primary_key:
        parts.append("<pk/>")

    targets = [
        f"`{to_definition_key(ref_schema, ref_table)}.{ref_column}`"
        for ref_schema, ref_table, ref_column in relation.foreign_keys.get(column_name, [])
    ]
    if targets:
        parts.append(", ".join(targets))

    return " ".join(parts)
