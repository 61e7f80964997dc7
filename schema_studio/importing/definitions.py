"""
Importer - Schema Description to Snapshot

Turns an OpenAPI-style schema description into a Snapshot:

    {
      "definitions": {"<table key>": {"properties": {"<col>": {...}}, "required": [...]}},
      "paths": {"/<table key>": {"get": {}, ...}}
    }

This is the shape the Postgres introspector produces. Primary and foreign
keys travel inside each property's `description`: `<pk/>` marks a primary
key column and the first backtick-quoted reference (`schema.table.column`)
is the foreign key target.
"""

import logging
from typing import Any, List, Mapping, Optional

from ..domain.models import Column, Snapshot, Table
from ..operations.models import DEFAULT_COLUMN_TYPE

logger = logging.getLogger(__name__)

PK_MARKER = "<pk/>"


def tables_from_definitions(
    definitions: Mapping[str, Any],
    paths: Optional[Mapping[str, Any]] = None,
    current: Optional[Snapshot] = None,
) -> Snapshot:
    """
    Builds a Snapshot from a schema description.

    Tables already present in `current` keep their canvas position. Keys
    without properties and tables left without any titled column are dropped.
    """
    paths = paths or {}
    current = current or {}
    tables: Snapshot = {}
    removed = 0

    for raw_key, definition in definitions.items():
        key = raw_key.strip() if isinstance(raw_key, str) else ""
        properties = definition.get("properties") if isinstance(definition, Mapping) else None

        if not key or not isinstance(properties, Mapping) or not properties:
            removed += 1
            continue

        required = set(definition.get("required") or [])
        columns = [
            _column_from_property(name, prop, name in required)
            for name, prop in properties.items()
            if isinstance(name, str) and name.strip()
        ]
        if not columns:
            removed += 1
            continue

        existing = current.get(key)
        tables[key] = Table(
            title=key,
            namespace=key.split(".")[0] if "." in key else None,
            columns=columns,
            is_view=_is_view(key, paths),
            position=existing.position if existing else None,
        )

    if removed:
        logger.info(f"Skipped {removed} invalid table definition(s) during import")

    return tables


def _column_from_property(name: str, prop: Mapping[str, Any], required: bool) -> Column:
    prop = prop if isinstance(prop, Mapping) else {}
    description = prop.get("description") or ""

    # "character varying(255)" -> "character"
    format_ = (prop.get("format") or "").split(" ")[0]
    type_ = prop.get("type") or format_ or DEFAULT_COLUMN_TYPE

    return Column(
        title=name,
        type=type_,
        format=format_ or type_,
        default=prop.get("default"),
        required=required,
        pk=PK_MARKER in description,
        fk=_foreign_key_from_description(description),
        enum_type_name=prop.get("enumTypeName"),
        enum_values=prop.get("enumValues"),
    )


def _foreign_key_from_description(description: str) -> Optional[str]:
    parts: List[str] = description.split("`")
    if len(parts) < 3 or not parts[1]:
        return None
    return parts[1]


def _is_view(key: str, paths: Mapping[str, Any]) -> bool:
    # Views only expose GET; tables expose the full set of methods
    methods = paths.get(f"/{key}")
    return isinstance(methods, Mapping) and len(methods) == 1
