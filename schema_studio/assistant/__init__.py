from schema_studio.assistant.agent import AssistantReply, SchemaAssistant
from schema_studio.assistant.tools import TOOLS, AssistantTool, tool_specs

__all__ = [
    "AssistantReply",
    "AssistantTool",
    "SchemaAssistant",
    "TOOLS",
    "tool_specs",
]
