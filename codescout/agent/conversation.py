"""
Conversation state owned by a single dispatch loop.
"""

from __future__ import annotations

from typing import Iterator, List, Literal, Tuple

from pydantic import BaseModel, Field

from codescout.models.schemas import ModelReply, ToolCall, ToolResponse

TurnRole = Literal["instruction", "user", "model"]


class Turn(BaseModel):
    """
    One conversation entry. The payload is free text, the model's tool calls,
    or the combined responses to those calls.
    """

    role: TurnRole
    text: str | None = None
    tool_calls: List[ToolCall] = Field(default_factory=list)
    tool_responses: List[ToolResponse] = Field(default_factory=list)

    @classmethod
    def instruction(cls, text: str) -> "Turn":
        return cls(role="instruction", text=text)

    @classmethod
    def user(cls, text: str) -> "Turn":
        return cls(role="user", text=text)

    @classmethod
    def from_reply(cls, reply: ModelReply) -> "Turn":
        return cls(role="model", text=reply.text, tool_calls=list(reply.tool_calls))

    @classmethod
    def tool_results(cls, responses: List[ToolResponse]) -> "Turn":
        return cls(role="user", tool_responses=list(responses))


class ConversationState:
    """Append-only list of turns; ``reset`` truncates back to the instruction turn."""

    def __init__(self, instruction: str) -> None:
        self._turns: List[Turn] = [Turn.instruction(instruction)]

    def append(self, turn: Turn) -> None:
        if turn.role == "instruction":
            raise ValueError("Only the first turn may carry the instruction")
        self._turns.append(turn)

    def reset(self) -> None:
        del self._turns[1:]

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def instruction(self) -> str:
        return self._turns[0].text or ""

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))


__all__ = ["Turn", "TurnRole", "ConversationState"]
