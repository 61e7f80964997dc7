from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List

from .models import Message
from .store import SchemaStore


@dataclass
class Workspace:
    """
    One editing session: the schema store plus the chat transcript the
    assistant continues from. Created on session start, discarded on delete.
    """
    session_id: str
    store: SchemaStore
    history: List[Message] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
