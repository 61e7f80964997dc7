from schema_studio.export.sql import generate_sql_schema, sort_tables

__all__ = ["generate_sql_schema", "sort_tables"]
