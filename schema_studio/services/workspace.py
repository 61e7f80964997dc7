"""
Workspace Service - Application Orchestration Layer

This service is the entry point for all editing operations. It orchestrates
the interaction between the Data Layer (WorkspaceRepository), the State Layer
(SchemaStore), the importer/exporter, and the assistant. The API layer only
talks to this service.
"""

import logging
from typing import Any, List, Mapping, Optional

from ..assistant.agent import AssistantReply, SchemaAssistant
from ..export.sql import generate_sql_schema
from ..importing.definitions import tables_from_definitions
from ..infrastructure.database.introspection import introspect_postgres
from ..operations.models import BatchResult, Operation
from ..repositories.workspace import WorkspaceRepository
from ..state.workspace import Workspace
from .exceptions import WorkspaceNotFoundError

logger = logging.getLogger(__name__)


class WorkspaceService:
    def __init__(self, repository: WorkspaceRepository):
        self.repository = repository

    def create_workspace(self) -> Workspace:
        workspace = self.repository.create()
        logger.info(f"Created workspace {workspace.session_id}")
        return workspace

    def get_workspace(self, session_id: str) -> Workspace:
        workspace = self.repository.get(session_id)
        if workspace is None:
            raise WorkspaceNotFoundError(f"Session {session_id} not found")
        return workspace

    def delete_workspace(self, session_id: str) -> None:
        if not self.repository.delete(session_id):
            raise WorkspaceNotFoundError(f"Session {session_id} not found")
        logger.info(f"Deleted workspace {session_id}")

    # ==========================================================================
    # Editing
    # ==========================================================================

    def apply_operations(self, session_id: str, operations: List[Operation]) -> BatchResult:
        workspace = self.get_workspace(session_id)
        return workspace.store.apply(operations)

    def undo(self, session_id: str) -> Workspace:
        workspace = self.get_workspace(session_id)
        if not workspace.store.undo():
            logger.debug(f"Nothing to undo in {session_id}")
        return workspace

    def redo(self, session_id: str) -> Workspace:
        workspace = self.get_workspace(session_id)
        if not workspace.store.redo():
            logger.debug(f"Nothing to redo in {session_id}")
        return workspace

    def clear_history(self, session_id: str) -> Workspace:
        workspace = self.get_workspace(session_id)
        workspace.store.clear_history()
        return workspace

    # ==========================================================================
    # Import / Export
    # ==========================================================================

    def import_definitions(
        self,
        session_id: str,
        definitions: Mapping[str, Any],
        paths: Optional[Mapping[str, Any]] = None,
    ) -> Workspace:
        """Replaces the workspace schema with an imported one. History is cleared."""
        workspace = self.get_workspace(session_id)
        tables = tables_from_definitions(definitions, paths, current=workspace.store.snapshot)
        workspace.store.load(tables)
        return workspace

    def import_postgres(self, session_id: str, connection_string: str) -> Workspace:
        # Fail on an unknown session before opening a connection
        self.get_workspace(session_id)
        description = introspect_postgres(connection_string)
        return self.import_definitions(session_id, description["definitions"], description["paths"])

    def export_sql(self, session_id: str) -> str:
        workspace = self.get_workspace(session_id)
        return generate_sql_schema(workspace.store.snapshot)

    # ==========================================================================
    # Assistant
    # ==========================================================================

    async def send_message(self, session_id: str, text: str, assistant: SchemaAssistant) -> AssistantReply:
        workspace = self.get_workspace(session_id)
        result = await assistant.respond(workspace, text)
        logger.info(
            f"Assistant turn for {session_id}: {len(result.results)} operation(s) in {result.steps} step(s)"
        )
        return result
