import logging

from fastapi import FastAPI, Depends, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ..config import settings
from ..assistant.agent import SchemaAssistant
from ..infrastructure.database.introspection import introspect_postgres
from ..operations.models import OperationResult
from ..services.exceptions import (
    AssistantUnavailableError,
    EmptySchemaError,
    IntrospectionError,
    InvalidConnectionStringError,
    WorkspaceNotFoundError,
)
from ..services.workspace import WorkspaceService
from ..state.store import SchemaStore
from ..state.workspace import Workspace
from .dependencies import get_schema_assistant, get_workspace_service
from .schemas import (
    BatchResponse,
    ChatMessage,
    ChatResponse,
    CreateSessionResponse,
    HistoryEntryRead,
    HistoryNavigationResponse,
    HistoryRead,
    HistoryState,
    ImportTablesRequest,
    OperationApplied,
    OperationsRequest,
    PostgresConnectionRequest,
    SessionRead,
    UserMessage,
)

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Schema Studio")


# --- Error Translation ---

def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(WorkspaceNotFoundError)
async def workspace_not_found_handler(request: Request, exc: WorkspaceNotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(IntrospectionError)
async def introspection_error_handler(request: Request, exc: IntrospectionError):
    match exc:
        case InvalidConnectionStringError():
            return _error(status.HTTP_400_BAD_REQUEST, exc)
        case EmptySchemaError():
            return _error(status.HTTP_404_NOT_FOUND, exc)
        case _:
            logger.error(f"Introspection failed: {exc}")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


@app.exception_handler(AssistantUnavailableError)
async def assistant_unavailable_handler(request: Request, exc: AssistantUnavailableError):
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, exc)


# --- Mapping Helpers ---

def _history_state(store: SchemaStore) -> HistoryState:
    return HistoryState(
        cursor=store.cursor,
        can_undo=store.can_undo(),
        can_redo=store.can_redo(),
        undo_label=store.undo_label(),
        redo_label=store.redo_label(),
    )


def _applied(results: list[OperationResult]) -> list[OperationApplied]:
    return [
        OperationApplied(
            action=result.action,
            table_id=result.table_id,
            detail=result.detail,
            status=result.status,
        )
        for result in results
    ]


def _navigation(workspace: Workspace) -> HistoryNavigationResponse:
    return HistoryNavigationResponse(
        tables=workspace.store.snapshot,
        history=_history_state(workspace.store),
    )


# --- Sessions ---

@app.post(
    "/sessions",
    response_model=CreateSessionResponse,
    status_code=status.HTTP_201_CREATED
)
def create_session(
    service: WorkspaceService = Depends(get_workspace_service)
):
    """Starts a new workspace with an empty schema."""
    workspace = service.create_workspace()
    return CreateSessionResponse(session_id=workspace.session_id)


@app.get("/sessions/{session_id}", response_model=SessionRead)
def get_session(
    session_id: str,
    service: WorkspaceService = Depends(get_workspace_service)
):
    workspace = service.get_workspace(session_id)
    return SessionRead(
        session_id=workspace.session_id,
        tables=workspace.store.snapshot,
        history=_history_state(workspace.store),
        messages=[ChatMessage(role=msg.role, content=msg.content) for msg in workspace.history],
        created_at=workspace.created_at,
    )


@app.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    session_id: str,
    service: WorkspaceService = Depends(get_workspace_service)
):
    service.delete_workspace(session_id)
    # For 204, we must explicitly return a Response object with no content
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Editing ---

@app.post("/sessions/{session_id}/operations", response_model=BatchResponse)
def apply_operations(
    session_id: str,
    request: OperationsRequest,
    service: WorkspaceService = Depends(get_workspace_service)
):
    """Applies a batch of operations. Failed operations do not stop the batch."""
    batch = service.apply_operations(session_id, request.operations)
    return BatchResponse(
        ok=batch.ok,
        tables=batch.snapshot,
        operations_applied=_applied(batch.results),
    )


@app.post("/sessions/{session_id}/undo", response_model=HistoryNavigationResponse)
def undo(
    session_id: str,
    service: WorkspaceService = Depends(get_workspace_service)
):
    return _navigation(service.undo(session_id))


@app.post("/sessions/{session_id}/redo", response_model=HistoryNavigationResponse)
def redo(
    session_id: str,
    service: WorkspaceService = Depends(get_workspace_service)
):
    return _navigation(service.redo(session_id))


@app.get("/sessions/{session_id}/history", response_model=HistoryRead)
def get_history(
    session_id: str,
    service: WorkspaceService = Depends(get_workspace_service)
):
    store = service.get_workspace(session_id).store
    state = _history_state(store)
    return HistoryRead(
        **state.model_dump(),
        entries=[
            HistoryEntryRead(
                action=entry.action,
                table_id=entry.table_id,
                description=entry.description,
                timestamp=entry.timestamp,
            )
            for entry in store.entries
        ],
    )


@app.delete("/sessions/{session_id}/history", response_model=HistoryNavigationResponse)
def clear_history(
    session_id: str,
    service: WorkspaceService = Depends(get_workspace_service)
):
    return _navigation(service.clear_history(session_id))


# --- Import / Export ---

@app.put("/sessions/{session_id}/tables", response_model=HistoryNavigationResponse)
def import_tables(
    session_id: str,
    request: ImportTablesRequest,
    service: WorkspaceService = Depends(get_workspace_service)
):
    """Replaces the schema with an imported description. History is cleared."""
    workspace = service.import_definitions(session_id, request.definitions, request.paths)
    return _navigation(workspace)


@app.post("/sessions/{session_id}/import/postgres", response_model=HistoryNavigationResponse)
def import_postgres(
    session_id: str,
    request: PostgresConnectionRequest,
    service: WorkspaceService = Depends(get_workspace_service)
):
    workspace = service.import_postgres(session_id, request.connection_string)
    return _navigation(workspace)


@app.get("/sessions/{session_id}/sql", response_class=PlainTextResponse)
def export_sql(
    session_id: str,
    service: WorkspaceService = Depends(get_workspace_service)
):
    return PlainTextResponse(service.export_sql(session_id))


@app.post("/schema/postgres")
def describe_postgres(request: PostgresConnectionRequest):
    """Introspects a database without touching any workspace."""
    return introspect_postgres(request.connection_string)


# --- Assistant ---

@app.post("/sessions/{session_id}/messages", response_model=ChatResponse)
async def handle_message(
    session_id: str,
    message: UserMessage,
    service: WorkspaceService = Depends(get_workspace_service),
    assistant: SchemaAssistant = Depends(get_schema_assistant)
):
    result = await service.send_message(session_id, message.text, assistant)
    return ChatResponse(
        reply=result.reply,
        ok=all(r.ok for r in result.results),
        tables=result.snapshot,
        operations_applied=_applied(result.results),
    )
