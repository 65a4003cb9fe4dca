"""
In-memory code index and its shared, atomically swapped reference.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterator, Tuple

import numpy as np

logger = logging.getLogger(__name__)

ChunkKey = Tuple[str, int]


@dataclass(frozen=True)
class Chunk:
    file_path: str
    start_line: int
    end_line: int
    text: str

    @property
    def key(self) -> ChunkKey:
        return (self.file_path, self.start_line)


@dataclass(frozen=True, eq=False)
class CodeIndex:
    """
    Immutable snapshot of indexed chunks and their vectors.

    Every key in ``vectors`` belongs to a chunk in ``chunks``; a chunk may lack
    a vector when embedding it failed.
    """

    chunks: Tuple[Chunk, ...] = ()
    vectors: Dict[ChunkKey, np.ndarray] = field(default_factory=dict, repr=False)
    root: str | None = None
    _by_key: Dict[ChunkKey, Chunk] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_key = {chunk.key: chunk for chunk in self.chunks}
        orphans = [key for key in self.vectors if key not in by_key]
        if orphans:
            raise ValueError(f"Vectors without a matching chunk: {orphans[:3]}")
        object.__setattr__(self, "_by_key", by_key)

    @classmethod
    def empty(cls) -> "CodeIndex":
        return cls()

    def __len__(self) -> int:
        return len(self.chunks)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self.chunks)

    def chunk_for(self, key: ChunkKey) -> Chunk | None:
        return self._by_key.get(key)

    def files(self) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(chunk.file_path for chunk in self.chunks))


class IndexRef:
    """
    Shared holder for the current CodeIndex.

    Readers call ``snapshot()`` once per search; writers build a fresh index
    and ``publish()`` it, so a half-built index is never observable.
    """

    def __init__(self, index: CodeIndex | None = None) -> None:
        self._index = index or CodeIndex.empty()
        self._built = index is not None
        self.rebuild_lock = threading.Lock()

    @property
    def is_built(self) -> bool:
        return self._built

    def snapshot(self) -> CodeIndex:
        return self._index

    def publish(self, index: CodeIndex) -> None:
        self._index = index
        self._built = True
        logger.info(
            "Index published",
            extra={"chunks": len(index), "vectors": len(index.vectors), "root": index.root},
        )


__all__ = ["Chunk", "ChunkKey", "CodeIndex", "IndexRef"]
