"""
Dependency Injection Wiring (Composition Root).

This module acts as the central "container" for the application's services.
It is responsible for:
1. Instantiating the core Singleton services (Repository, LLM Adapter, Assistant).
2. Wiring them together (e.g., injecting the LLM Adapter into the Assistant).
3. Managing the lifecycle of these objects using @lru_cache to ensure
   they are created only once per application process.

Tests swap any of these through app.dependency_overrides.
"""

from functools import lru_cache
from fastapi import Depends

from ..config import settings
from ..llm.interface import LLMProvider
from ..llm.adapters.openai_adapter import OpenAIAdapter
from ..repositories.workspace import WorkspaceRepository, InMemoryWorkspaceRepository
from ..assistant.agent import SchemaAssistant
from ..services.exceptions import AssistantUnavailableError
from ..services.workspace import WorkspaceService

# Workspace Repository (Singleton)
# Note: In-memory storage must be a singleton so data persists across requests!
@lru_cache()
def get_workspace_repository() -> WorkspaceRepository:
    return InMemoryWorkspaceRepository(max_history_entries=settings.HISTORY_MAX_ENTRIES)

# The Workspace Service (Singleton Service)
@lru_cache()
def get_workspace_service(
    repo: WorkspaceRepository = Depends(get_workspace_repository)
) -> WorkspaceService:
    return WorkspaceService(repository=repo)

# LLM Provider (Singleton)
@lru_cache()
def get_llm_provider() -> LLMProvider:
    if not settings.OPENAI_API_KEY:
        raise AssistantUnavailableError("OPENAI_API_KEY is not configured")
    return OpenAIAdapter(
        api_key=settings.OPENAI_API_KEY,
        model_name=settings.OPENAI_MODEL
    )

# The Assistant (Singleton Service)
@lru_cache()
def get_schema_assistant(
    llm: LLMProvider = Depends(get_llm_provider)
) -> SchemaAssistant:
    return SchemaAssistant(
        llm_provider=llm,
        max_steps=settings.ASSISTANT_MAX_STEPS,
        temperature=settings.LLM_TEMPERATURE
    )
