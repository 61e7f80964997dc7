"""
State Layer - Runtime Data Models

This module defines the runtime records kept per workspace: the entries of
the undo/redo history and the chat transcript shared with the assistant.
"""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain.models import Table
from ..operations.models import OperationAction


class HistoryEntry(BaseModel):
    """
    A committed, reversible record of one successful operation.

    `before=None` marks a creation (undo deletes), `after=None` marks a
    deletion (undo recreates from `before`). The table lives under
    `previous_table_id` before the edit and under `table_id` after it; the two
    differ only for renames. `displaced` is a table that a rename
    overwrote at `table_id`; undo puts it back.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    action: OperationAction
    table_id: str = Field(..., alias="tableId")
    previous_table_id: str = Field(..., alias="previousTableId")
    before: Optional[Table] = None
    after: Optional[Table] = None
    displaced: Optional[Table] = None
    description: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Message(BaseModel):
    role: Literal["user", "assistant"]
    content: str
