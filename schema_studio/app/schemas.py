"""
API Layer - Request/Response Schemas

Pydantic models for API request and response validation.
Wire names follow the canvas client (camelCase).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain.models import Table
from ..operations.models import Operation, OperationAction, OperationStatus


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateSessionResponse(BaseModel):
    session_id: str


class ChatMessage(BaseModel):
    role: str
    content: str


class HistoryState(_ApiModel):
    cursor: int
    can_undo: bool = Field(..., alias="canUndo")
    can_redo: bool = Field(..., alias="canRedo")
    undo_label: Optional[str] = Field(None, alias="undoLabel")
    redo_label: Optional[str] = Field(None, alias="redoLabel")


class SessionRead(_ApiModel):
    session_id: str
    tables: Dict[str, Table]
    history: HistoryState
    messages: List[ChatMessage]
    created_at: datetime


# --- Operations ---

class OperationsRequest(BaseModel):
    operations: List[Operation]


class OperationApplied(_ApiModel):
    action: OperationAction
    table_id: Optional[str] = Field(None, alias="tableId")
    detail: str
    status: OperationStatus


class BatchResponse(_ApiModel):
    ok: bool
    tables: Dict[str, Table]
    operations_applied: List[OperationApplied] = Field(default_factory=list, alias="operationsApplied")


# --- History ---

class HistoryEntryRead(_ApiModel):
    action: OperationAction
    table_id: str = Field(..., alias="tableId")
    description: str
    timestamp: datetime


class HistoryRead(HistoryState):
    entries: List[HistoryEntryRead]


class HistoryNavigationResponse(_ApiModel):
    tables: Dict[str, Table]
    history: HistoryState


# --- Import / Introspection ---

class ImportTablesRequest(BaseModel):
    definitions: Dict[str, Any]
    paths: Dict[str, Any] = Field(default_factory=dict)


class PostgresConnectionRequest(_ApiModel):
    connection_string: str = Field(..., alias="connectionString")


# --- Assistant ---

class UserMessage(BaseModel):
    text: str = Field(..., min_length=1)


class ChatResponse(_ApiModel):
    reply: str
    ok: bool
    tables: Dict[str, Table]
    operations_applied: List[OperationApplied] = Field(default_factory=list, alias="operationsApplied")
