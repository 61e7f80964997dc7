"""
State Layer - Runtime Schema State

Defines the SchemaStore (snapshot + undo/redo history), its History Entries,
and the Workspace that owns a store for one editing session.
"""

from schema_studio.state.models import (
    HistoryEntry,
    Message,
)
from schema_studio.state.store import SchemaStore
from schema_studio.state.workspace import Workspace

__all__ = [
    "HistoryEntry",
    "Message",
    "SchemaStore",
    "Workspace",
]
