"""
Declared tool schema and name-based execution against the filesystem and the index.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

from pydantic import BaseModel

from codescout.config import settings
from codescout.errors import UnknownToolError
from codescout.indexing.index import IndexRef
from codescout.retrieval.ranker import Ranker
from codescout.tools.filesystem import FileSystemTools

logger = logging.getLogger(__name__)


def _function(name: str, description: str, properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        },
    }


TOOL_SCHEMAS: List[Dict[str, Any]] = [
    _function(
        "read_file",
        "Read a file and return its content.",
        {"path": {"type": "string", "description": "Path of the file, relative to the workspace root."}},
        ["path"],
    ),
    _function(
        "list_directory",
        "List directory contents. Directories end with '/'.",
        {
            "path": {"type": "string", "description": "Directory to list, relative to the workspace root."},
            "recursive": {"type": "boolean", "description": "Whether to list contents recursively."},
        },
        ["path"],
    ),
    _function(
        "search_file",
        "Search for files by name using a glob pattern such as '*.py' or 'src/**/index.ts'.",
        {
            "pattern": {"type": "string", "description": "The glob pattern to search for."},
            "root_dir": {"type": "string", "description": "Directory to start the search from."},
        },
        ["pattern"],
    ),
    _function(
        "grep",
        "Search file contents with a case-insensitive regular expression.",
        {
            "search_term": {"type": "string", "description": "Regular expression to search for."},
            "root_dir": {"type": "string", "description": "Directory to search in."},
            "file_pattern": {"type": "string", "description": "Glob for files to include, e.g. '**/*.ts'."},
        },
        ["search_term"],
    ),
    _function(
        "search_codebase",
        "Semantic search through the indexed codebase; returns file, line and a snippet per hit.",
        {
            "query": {"type": "string", "description": "Natural language query."},
            "limit": {"type": "integer", "description": "Maximum number of results to return."},
        },
        ["query"],
    ),
    _function(
        "get_file_info",
        "Get file information: content, size and last modification time.",
        {"path": {"type": "string", "description": "Path of the file, relative to the workspace root."}},
        ["path"],
    ),
]

TOOL_NAMES = frozenset(schema["function"]["name"] for schema in TOOL_SCHEMAS)


def to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def _require(args: Dict[str, Any], *names: str) -> Any:
    for name in names:
        value = args.get(name)
        if value not in (None, ""):
            return value
    raise ValueError(f"Missing required argument: {names[0]}")


def _flag(value: Any) -> bool:
    # Models sometimes send booleans as strings.
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return value is True


class ToolRegistry:
    """Maps declared tool names onto FileSystemTools and the Ranker."""

    def __init__(self, fs_tools: FileSystemTools, index_ref: IndexRef, ranker: Ranker) -> None:
        self.fs_tools = fs_tools
        self.index_ref = index_ref
        self.ranker = ranker
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {
            "read_file": self._read_file,
            "list_directory": self._list_directory,
            "search_file": self._search_file,
            "grep": self._grep,
            "search_codebase": self._search_codebase,
            "get_file_info": self._get_file_info,
        }

    @property
    def schemas(self) -> List[Dict[str, Any]]:
        return TOOL_SCHEMAS

    def execute(self, name: str, args: Dict[str, Any] | None = None) -> Any:
        """Run one tool synchronously and return a JSON-serialisable result."""
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownToolError(name)
        logger.info("Executing tool", extra={"tool": name, "tool_args": args or {}})
        return to_jsonable(handler(args or {}))

    # --- Handlers ---
    def _read_file(self, args: Dict[str, Any]) -> str:
        return self.fs_tools.read_file(_require(args, "path", "file_path"))

    def _list_directory(self, args: Dict[str, Any]) -> List[str]:
        path = args.get("path") or args.get("dir_path") or "."
        return self.fs_tools.list_directory(path, recursive=_flag(args.get("recursive")))

    def _search_file(self, args: Dict[str, Any]) -> List[str]:
        return self.fs_tools.search_file(_require(args, "pattern"), args.get("root_dir") or ".")

    def _grep(self, args: Dict[str, Any]) -> Any:
        return self.fs_tools.grep(
            _require(args, "search_term", "term"),
            args.get("root_dir") or ".",
            args.get("file_pattern") or "**/*",
        )

    def _search_codebase(self, args: Dict[str, Any]) -> Any:
        limit = int(args.get("limit") or settings.search_default_limit)
        return self.ranker.search(self.index_ref.snapshot(), _require(args, "query"), limit)

    def _get_file_info(self, args: Dict[str, Any]) -> Any:
        return self.fs_tools.get_file_info(_require(args, "path", "file_path"))


__all__ = ["ToolRegistry", "TOOL_SCHEMAS", "TOOL_NAMES", "to_jsonable"]
