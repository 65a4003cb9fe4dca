"""
OpenAI chat client with function tools.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Sequence

from openai import AsyncOpenAI, OpenAIError

from codescout.agent.conversation import Turn
from codescout.config import settings
from codescout.errors import ServiceFailure
from codescout.models.schemas import ModelReply, ToolCall, ToolResponse

DEFAULT_LLM_MODEL = settings.llm_model_name
DEFAULT_TEMPERATURE = 0.0

logger = logging.getLogger(__name__)


def _tool_message(response: ToolResponse) -> Dict[str, Any]:
    payload = {"error": response.error} if response.error is not None else {"result": response.result}
    return {
        "role": "tool",
        "tool_call_id": response.call_id,
        "content": json.dumps(payload, ensure_ascii=False, default=str),
    }


def turns_to_messages(turns: Iterable[Turn]) -> List[Dict[str, Any]]:
    """
    Convert conversation turns into Chat Completions messages. A combined
    tool-response turn becomes one ``tool`` message per call.
    """
    messages: List[Dict[str, Any]] = []
    for turn in turns:
        if turn.role == "instruction":
            messages.append({"role": "system", "content": turn.text or ""})
        elif turn.role == "model":
            message: Dict[str, Any] = {"role": "assistant", "content": turn.text}
            if turn.tool_calls:
                message["tool_calls"] = [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {
                            "name": call.name,
                            "arguments": json.dumps(call.arguments, ensure_ascii=False),
                        },
                    }
                    for call in turn.tool_calls
                ]
            messages.append(message)
        elif turn.tool_responses:
            messages.extend(_tool_message(response) for response in turn.tool_responses)
        else:
            messages.append({"role": "user", "content": turn.text or ""})
    return messages


def parse_reply(message: Any) -> ModelReply:
    calls: List[ToolCall] = []
    for raw in getattr(message, "tool_calls", None) or []:
        function = getattr(raw, "function", None)
        if function is None:
            continue
        try:
            arguments = json.loads(function.arguments or "{}")
        except json.JSONDecodeError:
            logger.warning("Tool call arguments are not valid JSON", extra={"tool": function.name})
            arguments = {}
        if not isinstance(arguments, dict):
            arguments = {}
        calls.append(ToolCall(id=raw.id, name=function.name, arguments=arguments))

    return ModelReply(text=getattr(message, "content", None), tool_calls=calls)


class LLMClient:
    def __init__(
        self,
        model: str = DEFAULT_LLM_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=settings.openai_base_url,
            timeout=settings.llm_timeout_sec,
        )

    async def complete(self, turns: Sequence[Turn], tools: List[Dict[str, Any]] | None = None) -> ModelReply:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "messages": turns_to_messages(turns),
        }
        if tools:
            kwargs["tools"] = tools

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except OpenAIError as exc:
            raise ServiceFailure(f"Model request failed: {exc}") from exc

        if not response.choices:
            return ModelReply()
        return parse_reply(response.choices[0].message)


__all__ = ["LLMClient", "turns_to_messages", "parse_reply", "DEFAULT_LLM_MODEL", "DEFAULT_TEMPERATURE"]
