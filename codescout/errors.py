"""
Error taxonomy shared by the tool set, the index build and the dispatch loop.
"""

from __future__ import annotations


class CodeScoutError(Exception):
    """Base class for all codescout errors."""


class PathNotFoundError(CodeScoutError, FileNotFoundError):
    """A requested path does not exist under the workspace root."""


class ToolIOError(CodeScoutError, OSError):
    """A path exists but cannot be used for the requested operation."""


class InvalidPatternError(CodeScoutError, ValueError):
    """A glob or regular expression argument could not be compiled."""


class UnknownToolError(CodeScoutError):
    """The model asked for a tool that is not declared."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class ServiceFailure(CodeScoutError):
    """The remote model call failed outright."""


__all__ = [
    "CodeScoutError",
    "PathNotFoundError",
    "ToolIOError",
    "InvalidPatternError",
    "UnknownToolError",
    "ServiceFailure",
]
