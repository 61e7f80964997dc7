from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Security: Read from .env, never hardcode defaults here
    # The assistant endpoint answers 503 while this is unset.
    OPENAI_API_KEY: Optional[str] = None

    # Model Configuration
    OPENAI_MODEL: str = "gpt-4o-mini"

    # Generation Parameters
    LLM_TEMPERATURE: float = 0.0
    # Upper bound on model round-trips for a single chat message
    ASSISTANT_MAX_STEPS: int = 20

    # Undo/redo history bound per workspace; oldest entries are dropped first.
    # None disables the bound.
    HISTORY_MAX_ENTRIES: Optional[int] = 100

    # Introspection
    INTROSPECTION_CONNECT_TIMEOUT: int = 10

    LOG_LEVEL: str = "INFO"

    # Loads from a .env file in the root directory
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

# Singleton instance
settings = Settings()
