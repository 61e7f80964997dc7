from schema_studio.importing.definitions import tables_from_definitions

__all__ = ["tables_from_definitions"]
