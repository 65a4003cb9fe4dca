"""
Inline file contents referenced with ``@path`` tokens in user input.
"""

from __future__ import annotations

import logging
import re
from typing import List

from codescout.errors import CodeScoutError
from codescout.tools.filesystem import FileSystemTools

logger = logging.getLogger(__name__)

# "@" not glued to a preceding word (so e-mail addresses are ignored), then a
# run of non-whitespace, non-quote characters.
FILE_REFERENCE_PATTERN = re.compile(r"(?<![\w@])@([^\s\"'`]+)")
TRAILING_PUNCTUATION = ".,;:!?)]}>"


def find_file_references(text: str) -> List[str]:
    """Candidate paths in order of appearance, duplicates removed."""
    return list(dict.fromkeys(match.group(1) for match in FILE_REFERENCE_PATTERN.finditer(text)))


class ContextExpander:
    """
    Appends a fenced block with the contents of every readable ``@path`` token.

    Tokens that do not name a readable file are left alone; the visible text
    of the input is never rewritten.
    """

    def __init__(self, fs_tools: FileSystemTools) -> None:
        self.fs_tools = fs_tools

    def expand(self, text: str) -> str:
        candidates = find_file_references(text)
        if not candidates:
            return text

        logger.info("Detected context references", extra={"count": len(candidates)})
        expanded = text
        injected: set[str] = set()
        for candidate in candidates:
            resolved = self._read_candidate(candidate)
            if resolved is None:
                continue
            path, content = resolved
            if path in injected:
                continue
            injected.add(path)
            expanded += f"\n\n```{path}\n{content}\n```\n"
            logger.info("Injected context", extra={"path": path})
        return expanded

    def _read_candidate(self, candidate: str) -> tuple[str, str] | None:
        attempts = [candidate]
        stripped = candidate.rstrip(TRAILING_PUNCTUATION)
        if stripped and stripped != candidate:
            attempts.append(stripped)

        for path in attempts:
            try:
                return path, self.fs_tools.read_file(path)
            except (CodeScoutError, OSError, ValueError):
                continue
        return None


__all__ = ["ContextExpander", "find_file_references", "FILE_REFERENCE_PATTERN"]
