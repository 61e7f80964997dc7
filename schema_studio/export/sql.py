"""
Exporter - Snapshot to PostgreSQL DDL

Renders a Snapshot as a single SQL script:

    -- Enum Types          one CREATE TYPE per distinct enum type name
    -- Table: <id>         CREATE TABLE, then ALTER TABLE for PK / FKs,
                           ordered so referenced tables come first
    -- View: <id>          placeholders, views carry no definition

The output is meant to be read and edited, not executed blindly.
"""

from typing import Dict, List, Optional, Tuple

from ..domain.models import Column, Snapshot

RESERVED_KEYWORDS = frozenset({
    "user",
    "database",
    "default",
    "dictionary",
    "files",
    "group",
    "index",
    "level",
    "max",
    "min",
    "password",
    "procedure",
    "table",
    "view",
})


def generate_sql_schema(snapshot: Snapshot) -> str:
    sql = ""

    enum_types = _collect_enum_types(snapshot)
    if enum_types:
        sql += "-- Enum Types\n"
        for type_name, values in enum_types.items():
            quoted_values = ", ".join(_quote_literal(value) for value in values)
            sql += f"CREATE TYPE {_qualified_type_name(type_name)} AS ENUM ({quoted_values});\n"
        sql += "\n"

    ordered = sort_tables(snapshot)

    for table_id in ordered:
        table = snapshot[table_id]
        if table.is_view:
            continue
        sql += _create_table(table_id, table.columns)

    for table_id in ordered:
        if snapshot[table_id].is_view:
            sql += f"-- View: {table_id}\n"
            sql += "-- Note: View definition needs to be manually added\n"
            sql += f'-- CREATE VIEW "{table_id}" AS SELECT ...;\n\n'

    return sql


def sort_tables(snapshot: Snapshot) -> List[str]:
    """
    Orders table identifiers so that every table comes after the tables its
    foreign keys reference. Self references and references to tables outside
    the Snapshot are ignored. If a cycle remains, the tables involved are
    appended in Snapshot order.
    """
    dependencies: Dict[str, set] = {}
    for table_id, table in snapshot.items():
        deps = set()
        for column in table.columns:
            target = _split_reference(column.fk)
            if target and target[0] != table_id and target[0] in snapshot:
                deps.add(target[0])
        dependencies[table_id] = deps

    ordered: List[str] = []
    remaining = list(snapshot)

    while remaining:
        ready = [table_id for table_id in remaining if dependencies[table_id].issubset(ordered)]
        if not ready:
            ordered.extend(remaining)
            break
        for table_id in ready:
            ordered.append(table_id)
            remaining.remove(table_id)

    return ordered


# ==============================================================================
# Rendering helpers
# ==============================================================================

def _create_table(table_id: str, columns: List[Column]) -> str:
    primary_keys: List[str] = []
    foreign_keys: List[Tuple[str, str, str]] = []

    lines = []
    for column in columns:
        lines.append("  " + _column_definition(column))
        if column.pk:
            primary_keys.append(column.title)
        target = _split_reference(column.fk)
        if target:
            foreign_keys.append((column.title, target[0], target[1]))

    sql = f"-- Table: {table_id}\n"
    sql += f'CREATE TABLE "{table_id}" (\n'
    sql += ",\n".join(lines)
    sql += "\n" if lines else ""
    sql += ");\n\n"

    if primary_keys:
        keys = ", ".join(f'"{key}"' for key in primary_keys)
        sql += f'ALTER TABLE "{table_id}" ADD PRIMARY KEY ({keys});\n'

    for column_name, ref_table, ref_column in foreign_keys:
        constraint = f"{table_id}_{column_name}_foreign"
        sql += (
            f'ALTER TABLE "{table_id}" ADD CONSTRAINT "{constraint}" '
            f'FOREIGN KEY ("{column_name}") REFERENCES "{ref_table}" ("{ref_column}");\n'
        )

    if primary_keys or foreign_keys:
        sql += "\n"

    return sql


def _column_definition(column: Column) -> str:
    name = f'"{column.title}"' if column.title in RESERVED_KEYWORDS else column.title
    fmt = column.format or ""

    if fmt == "integer" and column.pk:
        data_type = "SERIAL"
    elif fmt == "enum" and column.enum_type_name:
        data_type = _qualified_type_name(column.enum_type_name)
    else:
        data_type = fmt.upper()

    definition = f"{name} {data_type}"

    if column.required and not column.pk:
        definition += " NOT NULL"

    if column.default not in (None, ""):
        definition += f" DEFAULT {column.default}"
    elif fmt == "date" or "timestamp" in fmt:
        definition += " DEFAULT now()"
    elif column.required and fmt == "uuid" and not column.fk:
        definition += " DEFAULT uuid_generate_v4()"

    return definition


def _collect_enum_types(snapshot: Snapshot) -> Dict[str, List[str]]:
    # Last definition of a type name wins
    enum_types: Dict[str, List[str]] = {}
    for table in snapshot.values():
        for column in table.columns:
            if column.enum_type_name and column.enum_values:
                enum_types[column.enum_type_name] = list(column.enum_values)
    return enum_types


def _quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _qualified_type_name(type_name: str) -> str:
    # "billing.status" -> billing."status"
    if "." in type_name:
        schema, name = type_name.split(".", 1)
        return f'{schema}."{name}"'
    return f'"{type_name}"'


def _split_reference(fk: Optional[str]) -> Optional[Tuple[str, str]]:
    """'schema.table.column' -> ('schema.table', 'column'); 'table.column' -> ('table', 'column')."""
    if not fk or "." not in fk:
        return None
    table_id, column_name = fk.rsplit(".", 1)
    if not table_id or not column_name:
        return None
    return table_id, column_name
