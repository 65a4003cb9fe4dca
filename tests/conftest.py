from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Sequence

import pytest

from codescout.agent.conversation import Turn
from codescout.embeddings.client import HashingVectorizer
from codescout.indexing.index import IndexRef
from codescout.models.schemas import ModelReply
from codescout.retrieval.ranker import Ranker
from codescout.tools.filesystem import FileSystemTools
from codescout.tools.registry import ToolRegistry


def write_file(root: Path, rel: str, content: str | bytes) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


class ScriptedModel:
    """Stands in for the remote model: replays queued replies and records each request."""

    def __init__(self, replies: Sequence[ModelReply | Exception]) -> None:
        self.replies: List[ModelReply | Exception] = list(replies)
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, turns: Sequence[Turn], tools: List[Dict[str, Any]] | None = None) -> ModelReply:
        self.calls.append({"turns": tuple(turns), "tools": tools})
        if not self.replies:
            raise AssertionError("Unexpected model call")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    write_file(tmp_path, "src/a.ts", "export function add(a: number, b: number) {\n  return a + b;\n}\n")
    write_file(tmp_path, "src/util/strings.py", "def slugify(value):\n    return value.lower().replace(' ', '-')\n")
    write_file(tmp_path, "README.md", "# Demo project\n")
    write_file(tmp_path, "node_modules/left-pad/index.js", "module.exports = function leftPad() {};\n")
    write_file(tmp_path, ".git/config", "[core]\n")
    return tmp_path


@pytest.fixture
def fs_tools(workspace: Path) -> FileSystemTools:
    return FileSystemTools(workspace)


@pytest.fixture
def vectorizer() -> HashingVectorizer:
    return HashingVectorizer()


@pytest.fixture
def index_ref() -> IndexRef:
    return IndexRef()


@pytest.fixture
def registry(fs_tools: FileSystemTools, index_ref: IndexRef, vectorizer: HashingVectorizer) -> ToolRegistry:
    return ToolRegistry(fs_tools, index_ref, Ranker(vectorizer))
