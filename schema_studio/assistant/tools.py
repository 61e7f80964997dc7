"""
Assistant Tools - Tool Registry for the Schema Assistant

Every tool the model may call is declared here together with the pydantic
model its arguments are validated against.

- Read-only tools inspect a Snapshot and return a JSON-serializable dict.
- Mutating tools never touch a Snapshot; they translate their arguments into
  an Operation. The agent applies the Operations of one model step as a
  single batch through the store.

set_foreign_key and remove_foreign_key are conveniences over alter_column.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from ..domain.models import Snapshot
from ..llm.interface import ToolSpec
from ..operations.models import (
    AddColumn,
    AlterColumn,
    ColumnPatch,
    CreateTable,
    DropColumn,
    DropTable,
    Operation,
    RenameTable,
)

SYSTEM_SCHEMAS = ("pg_catalog", "information_schema")
DEFAULT_SCHEMA = "public"


class _ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")


# =============================================================================
# ARGUMENT MODELS
# =============================================================================

class ListSchemasArgs(_ToolArgs):
    include_system: bool = Field(False, alias="includeSystem")


class ListTablesArgs(_ToolArgs):
    namespace: Optional[str] = Field(None, alias="schema", description="Only tables in this schema")
    search: Optional[str] = Field(None, description="Case-insensitive substring of 'schema.title'")
    include_columns: bool = Field(False, alias="includeColumns")
    limit: int = Field(100, gt=0, le=500)
    offset: int = Field(0, ge=0)


class GetTableDetailsArgs(_ToolArgs):
    table_id: str = Field(..., min_length=1, alias="tableId")


class SetForeignKeyArgs(_ToolArgs):
    table_id: str = Field(..., min_length=1, alias="tableId", description="The table containing the column")
    column_name: str = Field(..., min_length=1, alias="columnName", description="The column to set the FK on")
    references_table: str = Field(
        ..., min_length=1, alias="referencesTable", description='The referenced table (e.g. "users")'
    )
    references_column: str = Field(
        ..., min_length=1, alias="referencesColumn", description='The referenced column (e.g. "id")'
    )


class RemoveForeignKeyArgs(_ToolArgs):
    table_id: str = Field(..., min_length=1, alias="tableId", description="The table containing the column")
    column_name: str = Field(..., min_length=1, alias="columnName", description="The column to remove the FK from")


# =============================================================================
# READ-ONLY HANDLERS
# =============================================================================

def _schema_of(table_id: str, table) -> str:
    if table.namespace:
        return table.namespace
    return table_id.split(".")[0] if "." in table_id else DEFAULT_SCHEMA


def list_schemas(args: ListSchemasArgs, snapshot: Snapshot) -> Dict[str, Any]:
    schemas = {DEFAULT_SCHEMA}
    for table_id, table in snapshot.items():
        schemas.add(_schema_of(table_id, table))

    visible = sorted(s for s in schemas if args.include_system or s not in SYSTEM_SCHEMAS)
    return {"schemas": visible, "total": len(visible)}


def list_tables(args: ListTablesArgs, snapshot: Snapshot) -> Dict[str, Any]:
    matches = []
    for table_id, table in snapshot.items():
        schema = _schema_of(table_id, table)
        if args.namespace and schema != args.namespace:
            continue
        if args.search and args.search.lower() not in f"{schema}.{table.title}".lower():
            continue
        matches.append((table_id, table, schema))

    page = matches[args.offset:args.offset + args.limit]
    tables = []
    for table_id, table, schema in page:
        entry: Dict[str, Any] = {
            "id": table_id,
            "schema": schema,
            "title": table.title,
            "isView": table.is_view,
            "columnCount": len(table.columns),
        }
        if args.include_columns:
            entry["columns"] = [column.model_dump(by_alias=True, exclude_none=True) for column in table.columns]
        tables.append(entry)

    return {"total": len(matches), "tables": tables}


def get_table_details(args: GetTableDetailsArgs, snapshot: Snapshot) -> Dict[str, Any]:
    table = snapshot.get(args.table_id)
    if table is None:
        return {"ok": False, "message": f"Table '{args.table_id}' not found"}
    return {"ok": True, "table": table.model_dump(by_alias=True, exclude_none=True)}


# =============================================================================
# MUTATING TRANSLATIONS
# =============================================================================

def set_foreign_key(args: SetForeignKeyArgs) -> Operation:
    return AlterColumn(
        table_id=args.table_id,
        column_name=args.column_name,
        patch=ColumnPatch(fk=f"{args.references_table}.{args.references_column}"),
    )


def remove_foreign_key(args: RemoveForeignKeyArgs) -> Operation:
    # Explicit None marks fk as set, which clears it
    return AlterColumn(
        table_id=args.table_id,
        column_name=args.column_name,
        patch=ColumnPatch(fk=None),
    )


# =============================================================================
# REGISTRY
# =============================================================================

@dataclass(frozen=True)
class AssistantTool:
    name: str
    description: str
    args_model: Type[BaseModel]
    # Read-only tools: (args, snapshot) -> result dict
    run: Optional[Callable[[Any, Snapshot], Dict[str, Any]]] = None
    # Mutating tools: args -> Operation. Operation models translate to themselves.
    to_operation: Optional[Callable[[Any], Operation]] = None

    @property
    def mutating(self) -> bool:
        return self.run is None

    def spec(self) -> ToolSpec:
        parameters = self.args_model.model_json_schema(by_alias=True)
        # The discriminator is implied by the tool name
        parameters.get("properties", {}).pop("action", None)
        return ToolSpec(name=self.name, description=self.description, parameters=parameters)

    def build_operation(self, args: BaseModel) -> Operation:
        if self.to_operation is None:
            return args
        return self.to_operation(args)


TOOLS: Dict[str, AssistantTool] = {
    tool.name: tool
    for tool in [
        AssistantTool(
            name="list_schemas",
            description="List all schemas in the workspace, e.g. public, auth, billing.",
            args_model=ListSchemasArgs,
            run=list_schemas,
        ),
        AssistantTool(
            name="list_tables",
            description="List tables in the workspace. Use includeColumns:true for column details.",
            args_model=ListTablesArgs,
            run=list_tables,
        ),
        AssistantTool(
            name="get_table_details",
            description="Get detailed information about a specific table including all columns.",
            args_model=GetTableDetailsArgs,
            run=get_table_details,
        ),
        AssistantTool(
            name="create_table",
            description="Create a single table with columns. Call multiple times for multiple tables.",
            args_model=CreateTable,
        ),
        AssistantTool(
            name="drop_table",
            description="Drop a single table. Dependent foreign keys are not removed automatically.",
            args_model=DropTable,
        ),
        AssistantTool(
            name="rename_table",
            description="Rename a table. Updates the table identifier and title.",
            args_model=RenameTable,
        ),
        AssistantTool(
            name="add_column",
            description="Add a single column to a table. Call multiple times for multiple columns.",
            args_model=AddColumn,
        ),
        AssistantTool(
            name="drop_column",
            description="Remove a single column from a table.",
            args_model=DropColumn,
        ),
        AssistantTool(
            name="alter_column",
            description="Modify properties of a single column. Can add, change or remove the fk property.",
            args_model=AlterColumn,
        ),
        AssistantTool(
            name="set_foreign_key",
            description="Set a foreign key relationship on an existing column.",
            args_model=SetForeignKeyArgs,
            to_operation=set_foreign_key,
        ),
        AssistantTool(
            name="remove_foreign_key",
            description="Remove a foreign key relationship from a column.",
            args_model=RemoveForeignKeyArgs,
            to_operation=remove_foreign_key,
        ),
    ]
}


def tool_specs() -> List[ToolSpec]:
    return [tool.spec() for tool in TOOLS.values()]
