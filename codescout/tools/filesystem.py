"""
Read-only filesystem primitives exposed to the model and used by the index build.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple

from codescout.config import settings
from codescout.errors import InvalidPatternError, PathNotFoundError, ToolIOError
from codescout.indexing.chunker import split_lines
from codescout.models.schemas import FileInfo, GrepMatch

logger = logging.getLogger(__name__)

# Dependency-manager, version-control and build-output directories; never traversed.
EXCLUDED_DIRS = frozenset(
    {
        "node_modules",
        ".venv",
        "venv",
        "__pycache__",
        ".git",
        ".hg",
        ".svn",
        "dist",
        "build",
    }
)

INDEXED_EXTENSIONS = frozenset(
    {".ts", ".js", ".tsx", ".jsx", ".py", ".java", ".cpp", ".c", ".go", ".rs"}
)


def _match_segments(parts: List[str], segments: List[str]) -> bool:
    if not segments:
        return not parts
    head, rest = segments[0], segments[1:]
    if head == "**":
        return any(_match_segments(parts[i:], rest) for i in range(len(parts) + 1))
    if not parts:
        return False
    return fnmatch.fnmatchcase(parts[0], head) and _match_segments(parts[1:], rest)


def glob_match(rel_path: str, pattern: str) -> bool:
    """
    Match a posix relative path against a glob, one path segment at a time.

    ``*`` and ``?`` stay inside a segment; a ``**`` segment anywhere in the
    pattern matches zero or more directories.
    """
    pattern = pattern.replace("\\", "/")
    while pattern.startswith("./"):
        pattern = pattern[2:]
    segments = [segment for segment in pattern.split("/") if segment]
    parts = [part for part in rel_path.split("/") if part]
    return _match_segments(parts, segments)


def walk_tree(base: Path) -> Iterator[Tuple[Path, bool]]:
    """Yield ``(path, is_dir)`` under ``base`` in sorted order, pruning EXCLUDED_DIRS."""
    for dirpath, dirnames, filenames in os.walk(base):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS)
        for name in dirnames:
            yield Path(dirpath, name), True
        for name in sorted(filenames):
            yield Path(dirpath, name), False


class FileSystemTools:
    """
    Filesystem operations resolved against a single workspace root.

    Paths that resolve outside the root are rejected.
    """

    def __init__(self, root: str | Path | None = None, grep_max_matches: int | None = None) -> None:
        self.root = Path(root if root is not None else settings.workspace_root).resolve()
        self.grep_max_matches = grep_max_matches or settings.grep_max_matches

    # --- Path handling ---
    def resolve(self, path: str | Path) -> Path:
        candidate = Path(path).expanduser()
        full = (candidate if candidate.is_absolute() else self.root / candidate).resolve()
        if not full.is_relative_to(self.root):
            raise ToolIOError(f"Path is outside the workspace root: {path}")
        return full

    def relative(self, full: Path, base: Path | None = None) -> str:
        return full.relative_to(base or self.root).as_posix()

    def _require_dir(self, path: str | Path) -> Path:
        full = self.resolve(path)
        if not full.exists():
            raise PathNotFoundError(f"Directory not found: {path}")
        if not full.is_dir():
            raise ToolIOError(f"{path} is not a directory")
        if not os.access(full, os.R_OK | os.X_OK):
            raise ToolIOError(f"Directory is not readable: {path}")
        return full

    def _require_file(self, path: str | Path) -> Path:
        full = self.resolve(path)
        if not full.exists():
            raise PathNotFoundError(f"File not found: {path}")
        if not full.is_file():
            raise ToolIOError(f"{path} is not a file")
        return full

    # --- Tools ---
    def read_file(self, path: str) -> str:
        full = self._require_file(path)
        try:
            content = full.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ToolIOError(f"Cannot read {path}: {exc}") from exc
        logger.info("Read file", extra={"path": path, "chars": len(content)})
        return content

    def list_directory(self, path: str = ".", recursive: bool = False) -> List[str]:
        base = self._require_dir(path)
        try:
            if recursive:
                items = [
                    self.relative(entry, base) + ("/" if is_dir else "")
                    for entry, is_dir in walk_tree(base)
                ]
            else:
                items = [
                    entry.name + ("/" if entry.is_dir() else "")
                    for entry in base.iterdir()
                ]
        except OSError as exc:
            raise ToolIOError(f"Cannot list {path}: {exc}") from exc

        items.sort()
        logger.info("Listed directory", extra={"path": path, "recursive": recursive, "count": len(items)})
        return items

    def search_file(self, pattern: str, root_dir: str = ".") -> List[str]:
        """Find files and directories whose path matches ``pattern`` at any depth."""
        base = self._require_dir(root_dir)
        anywhere = "**/" + pattern.replace("\\", "/").lstrip("/")
        matches = []
        for entry, is_dir in walk_tree(base):
            rel = self.relative(entry, base)
            if glob_match(rel, anywhere):
                matches.append(rel + ("/" if is_dir else ""))
        matches.sort()
        logger.info("Searched files", extra={"pattern": pattern, "root": root_dir, "count": len(matches)})
        return matches

    def grep(self, search_term: str, root_dir: str = ".", file_pattern: str = "**/*") -> List[GrepMatch]:
        """
        Case-insensitive regex search over every file matching ``file_pattern``.

        Files that cannot be decoded or read are skipped individually.
        """
        base = self._require_dir(root_dir)
        try:
            regex = re.compile(search_term, re.IGNORECASE)
        except re.error as exc:
            raise InvalidPatternError(f"Invalid search pattern {search_term!r}: {exc}") from exc

        results: List[GrepMatch] = []
        for entry, is_dir in walk_tree(base):
            rel = self.relative(entry, base)
            if is_dir or not glob_match(rel, file_pattern):
                continue
            try:
                text = entry.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                logger.debug("Grep skipped unreadable file", extra={"path": rel})
                continue

            for lineno, line in enumerate(split_lines(text), start=1):
                if not regex.search(line):
                    continue
                results.append(GrepMatch(file=rel, line=lineno, content=line.strip()))
                if len(results) >= self.grep_max_matches:
                    logger.warning(
                        "Grep truncated",
                        extra={"term": search_term, "limit": self.grep_max_matches},
                    )
                    return results

        logger.info("Grep finished", extra={"term": search_term, "root": root_dir, "count": len(results)})
        return results

    def get_file_info(self, path: str) -> FileInfo:
        full = self._require_file(path)
        content = self.read_file(path)
        try:
            stats = full.stat()
        except OSError as exc:
            raise ToolIOError(f"Cannot stat {path}: {exc}") from exc
        return FileInfo(
            path=path,
            content=content,
            size=stats.st_size,
            last_modified=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
        )

    # --- Index support ---
    def iter_source_files(
        self,
        root_dir: str = ".",
        extensions: Iterable[str] = INDEXED_EXTENSIONS,
    ) -> List[Tuple[Path, str]]:
        """Return ``(absolute_path, relative_path)`` for indexable source files under ``root_dir``."""
        base = self._require_dir(root_dir)
        wanted = {ext.lower() for ext in extensions}
        return [
            (entry, self.relative(entry, base))
            for entry, is_dir in walk_tree(base)
            if not is_dir and entry.suffix.lower() in wanted
        ]


__all__ = [
    "FileSystemTools",
    "EXCLUDED_DIRS",
    "INDEXED_EXTENSIONS",
    "glob_match",
    "walk_tree",
]
