"""
Tool-dispatch loop: one conversation that interleaves model replies with tool execution.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, List, Protocol, Sequence, Tuple

from codescout.agent.context import ContextExpander
from codescout.agent.conversation import ConversationState, Turn
from codescout.agent.prompts import DEFAULT_INSTRUCTION
from codescout.config import settings
from codescout.errors import CodeScoutError, ServiceFailure
from codescout.indexing.pipeline import ReindexService, ReindexSummary
from codescout.models.schemas import ModelReply, ToolCall, ToolResponse
from codescout.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

CANNOT_PROCESS_RESPONSE = "I am sorry, but I could not process your request."
NO_FINAL_TEXT_RESPONSE = "No final text response."
TOOL_LIMIT_ERROR = "Tool call limit reached for this turn; answer with the information gathered so far."


class LoopState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    HAS_TOOL_CALLS = "has_tool_calls"
    EXECUTING_TOOLS = "executing_tools"
    HAS_TEXT = "has_text"
    DONE = "done"


class ModelClient(Protocol):
    async def complete(self, turns: Sequence[Turn], tools: List[Dict[str, Any]] | None = None) -> ModelReply:
        ...


class ToolDispatchLoop:
    """
    Drives one conversation with the remote model.

    After a batch of tool calls the model is queried exactly once more; tool
    calls in that second reply are answered with an error payload instead of
    being executed, so every call still gets a response.
    """

    def __init__(
        self,
        llm_client: ModelClient,
        registry: ToolRegistry,
        instruction: str = DEFAULT_INSTRUCTION,
        expander: ContextExpander | None = None,
        reindex_service: ReindexService | None = None,
        tool_timeout_sec: float | None = None,
    ) -> None:
        self.llm_client = llm_client
        self.registry = registry
        self.expander = expander
        self.reindex_service = reindex_service
        self.tool_timeout_sec = tool_timeout_sec or settings.tool_timeout_sec
        self.conversation = ConversationState(instruction)
        self.state = LoopState.DONE
        self._turn_active = False

    # --- Public API ---
    async def chat(self, user_input: str) -> str:
        if self._turn_active:
            raise RuntimeError("A turn is already in progress on this conversation")
        self._turn_active = True
        try:
            text = user_input
            if self.expander is not None:
                text = await asyncio.to_thread(self.expander.expand, user_input)
            self.conversation.append(Turn.user(text))
            await self._ensure_indexed()
            return await self._run_turn()
        finally:
            self._turn_active = False

    async def index_codebase(self, root_dir: str = ".") -> ReindexSummary:
        if self.reindex_service is None:
            raise RuntimeError("No reindex service configured")
        return await asyncio.to_thread(self.reindex_service.run, root_dir)

    def reset(self) -> None:
        self.conversation.reset()
        self.state = LoopState.DONE

    @property
    def history(self) -> Tuple[Turn, ...]:
        return self.conversation.turns

    # --- Steps ---
    async def _ensure_indexed(self) -> None:
        if self.reindex_service is None or self.reindex_service.index_ref.is_built:
            return
        logger.info("Auto-indexing codebase before first query")
        try:
            await self.index_codebase()
        except (CodeScoutError, OSError) as exc:
            logger.warning("Could not index codebase: %s", exc)

    async def _run_turn(self) -> str:
        reply = await self._query_model()

        if not reply.has_tool_calls:
            if not reply.has_text:
                self.state = LoopState.DONE
                logger.warning("Model returned neither text nor tool calls")
                return CANNOT_PROCESS_RESPONSE
            return self._finish(reply)

        self.state = LoopState.HAS_TOOL_CALLS
        self.conversation.append(Turn.from_reply(reply))
        responses = await self._execute_all(reply.tool_calls)
        self.conversation.append(Turn.tool_results(responses))

        final = await self._query_model()
        if final.has_tool_calls:
            logger.warning(
                "Model requested more tools after the follow-up query",
                extra={"tool_calls": len(final.tool_calls)},
            )
            self.conversation.append(Turn.from_reply(final))
            self.conversation.append(
                Turn.tool_results(
                    [ToolResponse(call_id=c.id, name=c.name, error=TOOL_LIMIT_ERROR) for c in final.tool_calls]
                )
            )
            self.state = LoopState.DONE
            return final.text if final.has_text else NO_FINAL_TEXT_RESPONSE

        if not final.has_text:
            self.state = LoopState.DONE
            return NO_FINAL_TEXT_RESPONSE
        return self._finish(final)

    def _finish(self, reply: ModelReply) -> str:
        self.state = LoopState.HAS_TEXT
        self.conversation.append(Turn.from_reply(reply))
        self.state = LoopState.DONE
        return reply.text or ""

    async def _query_model(self) -> ModelReply:
        self.state = LoopState.AWAITING_MODEL
        try:
            return await self.llm_client.complete(self.conversation.turns, self.registry.schemas)
        except ServiceFailure:
            self.state = LoopState.DONE
            logger.exception("Model request failed")
            raise

    async def _execute_all(self, calls: Sequence[ToolCall]) -> List[ToolResponse]:
        self.state = LoopState.EXECUTING_TOOLS
        logger.info("Executing tool calls", extra={"count": len(calls)})
        responses = await asyncio.gather(*(self._execute_one(call) for call in calls))
        return list(responses)

    async def _execute_one(self, call: ToolCall) -> ToolResponse:
        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(self.registry.execute, call.name, call.arguments),
                timeout=self.tool_timeout_sec,
            )
        except asyncio.TimeoutError:
            logger.error("Tool timed out", extra={"tool": call.name, "call_id": call.id})
            return ToolResponse(
                call_id=call.id,
                name=call.name,
                error=f"Tool execution timed out after {self.tool_timeout_sec:g}s",
            )
        except Exception as exc:
            logger.error("Tool failed: %s", exc, extra={"tool": call.name, "call_id": call.id})
            return ToolResponse(call_id=call.id, name=call.name, error=str(exc) or exc.__class__.__name__)

        return ToolResponse(call_id=call.id, name=call.name, result=result)


__all__ = [
    "ToolDispatchLoop",
    "LoopState",
    "ModelClient",
    "CANNOT_PROCESS_RESPONSE",
    "NO_FINAL_TEXT_RESPONSE",
    "TOOL_LIMIT_ERROR",
]
