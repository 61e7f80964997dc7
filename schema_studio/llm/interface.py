from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ToolSpec(BaseModel):
    """A function the model may call; `parameters` is a JSON Schema object."""
    name: str
    description: str
    parameters: Dict[str, Any]


class ToolCall(BaseModel):
    id: str
    name: str
    # Raw JSON text as produced by the model; parsing is the caller's job
    arguments: str = "{}"


class AssistantTurn(BaseModel):
    """One model response: free text, tool calls, or both."""
    content: Optional[str] = None
    tool_calls: List[ToolCall] = Field(default_factory=list)


class LLMProvider(ABC):
    """
    Abstract Base Class interface that defines the contract for any LLM provider
    (OpenAI, Anthropic, Local LLaMA, etc.)
    """

    @abstractmethod
    async def generate_with_tools(
        self,
        messages: List[dict],
        tools: List[ToolSpec],
        temperature: float = 0.0
    ) -> AssistantTurn:
        """
        Runs one model step. The model either answers in text or asks for one
        or more tool calls.
        """
        pass
