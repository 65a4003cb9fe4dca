from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, Field


# Retrieval
class SearchResult(BaseModel):
    """One ranked hit from the codebase index."""

    file: str
    line: int = Field(..., ge=1, description="First line of the matching chunk")
    snippet: str = Field(..., description="First line of the chunk, trimmed")
    score: float | None = Field(default=None, description="Higher is better")


# Filesystem tools
class GrepMatch(BaseModel):
    file: str
    line: int = Field(..., ge=1)
    content: str


class FileInfo(BaseModel):
    path: str
    content: str
    size: int = Field(..., ge=0)
    last_modified: datetime


# Tool dispatch
class ToolCall(BaseModel):
    """A structured request from the model to run one named tool."""

    id: str
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class ToolResponse(BaseModel):
    """Outcome of a single tool invocation, tagged with the originating call id."""

    call_id: str
    name: str
    result: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ModelReply(BaseModel):
    """Parsed reply from the remote model: plain text, tool calls, or neither."""

    text: str | None = None
    tool_calls: List[ToolCall] = Field(default_factory=list)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    @property
    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())


__all__ = [
    "SearchResult",
    "GrepMatch",
    "FileInfo",
    "ToolCall",
    "ToolResponse",
    "ModelReply",
]
