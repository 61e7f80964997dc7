import uuid
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..config import settings
from ..state.store import SchemaStore
from ..state.workspace import Workspace


class WorkspaceRepository(ABC):
    """
    Defines how the application accesses workspaces.
    Workspaces only live for the lifetime of the process; this interface keeps
    the API layer independent of where they are held.
    """

    @abstractmethod
    def create(self) -> Workspace:
        """Creates a new workspace with an empty schema and a unique ID."""
        pass

    @abstractmethod
    def get(self, session_id: str) -> Optional[Workspace]:
        """Retrieves a workspace by ID."""
        pass

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """Deletes a workspace. Returns True if found and deleted."""
        pass


class InMemoryWorkspaceRepository(WorkspaceRepository):
    """
    Uses an in-memory dictionary for workspace storage.
    """

    def __init__(self, max_history_entries: Optional[int] = settings.HISTORY_MAX_ENTRIES):
        self._store: Dict[str, Workspace] = {}
        self._max_history_entries = max_history_entries

    def create(self) -> Workspace:
        new_id = str(uuid.uuid4())
        workspace = Workspace(
            session_id=new_id,
            store=SchemaStore(max_entries=self._max_history_entries),
        )
        self._store[new_id] = workspace
        return workspace

    def get(self, session_id: str) -> Optional[Workspace]:
        return self._store.get(session_id)

    def delete(self, session_id: str) -> bool:
        if session_id in self._store:
            del self._store[session_id]
            return True
        return False
