"""
Line-window chunking of source files.
"""

from __future__ import annotations

from typing import List

from codescout.config import settings
from codescout.indexing.index import Chunk

CHUNK_WINDOW_LINES = settings.chunk_window_lines
CHUNK_OVERLAP_LINES = settings.chunk_overlap_lines


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` only; a final newline does not open another line."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def split_into_chunks(
    file_path: str,
    text: str,
    window: int = CHUNK_WINDOW_LINES,
    overlap: int = CHUNK_OVERLAP_LINES,
) -> List[Chunk]:
    """
    Split file text into overlapping windows of whole lines.

    Consecutive chunks share ``overlap`` lines; the walk stops as soon as a
    chunk reaches the last line, so short files produce a single chunk and
    empty text produces none.
    """
    if window < 1:
        raise ValueError(f"window must be positive, got {window}")
    if not 0 <= overlap < window:
        raise ValueError(f"overlap must be in [0, {window}), got {overlap}")

    lines = split_lines(text)
    total = len(lines)
    step = window - overlap
    chunks: List[Chunk] = []
    start = 0

    while start < total:
        end = min(start + window, total)
        chunks.append(
            Chunk(
                file_path=file_path,
                start_line=start + 1,
                end_line=end,
                text="\n".join(lines[start:end]),
            )
        )
        if end >= total:
            break
        start += step

    return chunks


__all__ = ["split_into_chunks", "split_lines", "CHUNK_WINDOW_LINES", "CHUNK_OVERLAP_LINES"]
