from schema_studio.infrastructure.database.introspection import (
    ColumnInfo,
    RelationInfo,
    build_schema_description,
    introspect_postgres,
    map_pg_type,
)

__all__ = [
    "ColumnInfo",
    "RelationInfo",
    "build_schema_description",
    "introspect_postgres",
    "map_pg_type",
]
