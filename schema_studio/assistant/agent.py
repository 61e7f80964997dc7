"""
Schema Assistant - Tool-Calling Loop

The SchemaAssistant turns a chat message into schema edits. It runs the model
in a loop, executing the tool calls it asks for, until the model answers in
plain text or the step budget is spent.
-----------------------------------------------

One loop iteration ("step"):
1. The model sees the system prompt, the transcript, and all tool results so far.
2. Its mutating tool calls are collected, in call order, into one batch and
   applied through the workspace's SchemaStore. Each successful operation
   becomes its own history entry, so the user can undo them one by one.
3. Read-only tool calls run afterwards, against the post-batch snapshot.
4. Every call gets a tool result message, in the original call order.

Operations are only applied after a model step has fully returned. If the
request is cancelled while waiting on the model, nothing from that step is
applied.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..config import settings
from ..domain.models import Snapshot
from ..llm.interface import AssistantTurn, LLMProvider, ToolCall
from ..operations.models import Operation, OperationResult
from ..state.models import Message
from ..state.workspace import Workspace
from .prompts.loader import render
from .prompts.templates import Template
from .tools import TOOLS, tool_specs

logger = logging.getLogger(__name__)

STEP_LIMIT_REPLY = (
    "I stopped before finishing because this request needed too many steps. "
    "The changes applied so far are kept; ask me to continue."
)


@dataclass
class AssistantReply:
    reply: str
    results: List[OperationResult] = field(default_factory=list)
    snapshot: Snapshot = field(default_factory=dict)
    steps: int = 0


class SchemaAssistant:
    def __init__(
        self,
        llm_provider: LLMProvider,
        max_steps: int = settings.ASSISTANT_MAX_STEPS,
        temperature: float = settings.LLM_TEMPERATURE,
    ):
        self.llm_provider = llm_provider
        self.max_steps = max_steps
        self.temperature = temperature

    async def respond(self, workspace: Workspace, user_text: str) -> AssistantReply:
        store = workspace.store
        messages = self._build_messages(workspace, user_text)
        specs = tool_specs()

        applied: List[OperationResult] = []
        reply: Optional[str] = None
        step = 0

        while step < self.max_steps:
            step += 1
            try:
                turn = await self.llm_provider.generate_with_tools(
                    messages=messages, tools=specs, temperature=self.temperature
                )
            except asyncio.CancelledError:
                logger.info(f"Assistant cancelled at step {step} for session {workspace.session_id}")
                raise

            if not turn.tool_calls:
                reply = turn.content or ""
                break

            messages.append(self._assistant_message(turn))
            outputs = self._run_step(workspace, turn.tool_calls, applied)
            for call in turn.tool_calls:
                messages.append({
                    "role": "tool",
                    "tool_call_id": call.id,
                    "content": json.dumps(outputs[call.id], default=str),
                })

        if reply is None:
            logger.warning(f"Assistant hit the step limit ({self.max_steps}) for session {workspace.session_id}")
            reply = STEP_LIMIT_REPLY

        workspace.history.append(Message(role="user", content=user_text))
        workspace.history.append(Message(role="assistant", content=reply))

        return AssistantReply(reply=reply, results=applied, snapshot=store.snapshot, steps=step)

    # ==========================================================================
    # Step execution
    # ==========================================================================

    def _run_step(
        self,
        workspace: Workspace,
        calls: List[ToolCall],
        applied: List[OperationResult],
    ) -> Dict[str, Dict[str, Any]]:
        outputs: Dict[str, Dict[str, Any]] = {}
        pending: List[tuple] = []
        reads: List[tuple] = []

        for call in calls:
            tool = TOOLS.get(call.name)
            if tool is None:
                outputs[call.id] = {"ok": False, "message": f"Unknown tool '{call.name}'"}
                continue

            try:
                args = tool.args_model.model_validate(json.loads(call.arguments or "{}"))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.info(f"Rejected malformed {call.name} call: {e}")
                outputs[call.id] = {"ok": False, "message": f"Invalid arguments for {call.name}: {e}"}
                continue

            if tool.mutating:
                pending.append((call.id, tool.build_operation(args)))
            else:
                reads.append((call.id, tool, args))

        if pending:
            operations: List[Operation] = [operation for _, operation in pending]
            batch = workspace.store.apply(operations)
            applied.extend(batch.results)
            for (call_id, _), result in zip(pending, batch.results):
                outputs[call_id] = {"ok": result.ok, "message": result.detail}

        if reads:
            snapshot = workspace.store.snapshot
            for call_id, tool, args in reads:
                outputs[call_id] = tool.run(args, snapshot)

        return outputs

    # ==========================================================================
    # Message assembly
    # ==========================================================================

    def _build_messages(self, workspace: Workspace, user_text: str) -> List[dict]:
        system_prompt = render(
            Template.SCHEMA_ASSISTANT,
            tables=sorted(workspace.store.snapshot),
        )
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend({"role": m.role, "content": m.content} for m in workspace.history)
        messages.append({"role": "user", "content": user_text})
        return messages

    def _assistant_message(self, turn: AssistantTurn) -> dict:
        return {
            "role": "assistant",
            "content": turn.content,
            "tool_calls": [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in turn.tool_calls
            ],
        }
