from typing import List

from openai import AsyncOpenAI

from ..interface import AssistantTurn, LLMProvider, ToolCall, ToolSpec
from ...config import settings


class OpenAIAdapter(LLMProvider):
    def __init__(self, api_key: str, model_name: str = settings.OPENAI_MODEL):
        self.client = AsyncOpenAI(api_key=api_key)
        self.model_name = model_name

    async def generate_with_tools(
        self,
        messages: List[dict],
        tools: List[ToolSpec],
        temperature: float = 0.0
    ) -> AssistantTurn:
        completion = await self.client.chat.completions.create(
            model=self.model_name,
            messages=messages,
            tools=[
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": tool.parameters,
                    },
                }
                for tool in tools
            ],
            temperature=temperature,
        )

        # Unwrap the OpenAI response structure into our own
        message = completion.choices[0].message
        return AssistantTurn(
            content=message.content,
            tool_calls=[
                ToolCall(
                    id=call.id,
                    name=call.function.name,
                    arguments=call.function.arguments or "{}",
                )
                for call in (message.tool_calls or [])
            ],
        )
