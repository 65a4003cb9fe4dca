"""
Indexing pipeline: enumerate source files, chunk, embed, and publish a fresh index.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Dict, List

import numpy as np
from tqdm import tqdm

from codescout.embeddings.client import Vectorizer
from codescout.indexing.chunker import split_into_chunks
from codescout.indexing.index import Chunk, ChunkKey, CodeIndex, IndexRef
from codescout.tools.filesystem import FileSystemTools

logger = logging.getLogger(__name__)


@dataclass
class BuildStats:
    indexed_files: int = 0
    skipped_files: int = 0
    failed_embeddings: int = 0


def build_index(
    fs_tools: FileSystemTools,
    vectorizer: Vectorizer,
    root_dir: str = ".",
    show_progress: bool = False,
    stats: BuildStats | None = None,
) -> CodeIndex:
    """
    Build a new CodeIndex from every source file under ``root_dir``.

    Each file is processed independently: an unreadable file is logged and
    skipped. Only a failure to enumerate ``root_dir`` itself is raised.
    """
    stats = stats if stats is not None else BuildStats()
    files = fs_tools.iter_source_files(root_dir)

    chunks: List[Chunk] = []
    vectors: Dict[ChunkKey, np.ndarray] = {}

    for path, rel in tqdm(files, desc="Indexing", unit="files", disable=not show_progress):
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            stats.skipped_files += 1
            logger.warning("Skipping file %s: %s", rel, exc, extra={"path": rel})
            continue

        file_chunks = split_into_chunks(rel, text)
        chunks.extend(file_chunks)
        stats.indexed_files += 1
        if not file_chunks:
            continue

        try:
            embeddings = vectorizer.embed_texts([c.text for c in file_chunks])
        except Exception as exc:
            # Chunks stay searchable through the fuzzy fallback.
            stats.failed_embeddings += len(file_chunks)
            logger.warning("Embedding failed for %s: %s", rel, exc, extra={"path": rel})
            continue

        for chunk, vector in zip(file_chunks, embeddings):
            if len(vector) > 0:
                vectors[chunk.key] = vector

    index = CodeIndex(chunks=tuple(chunks), vectors=vectors, root=str(fs_tools.resolve(root_dir)))
    logger.info(
        "Indexed %d code chunks from %d files",
        len(index),
        len(files),
        extra={"skipped_files": stats.skipped_files, "vectors": len(vectors)},
    )
    return index


@dataclass
class ReindexSummary:
    indexed_files: int
    skipped_files: int
    indexed_chunks: int
    elapsed_sec: float


class ReindexService:
    """Rebuilds the shared index from scratch and publishes it in one swap."""

    def __init__(
        self,
        index_ref: IndexRef,
        fs_tools: FileSystemTools,
        vectorizer: Vectorizer,
        show_progress: bool = False,
        logger_: logging.Logger | None = None,
    ) -> None:
        self.index_ref = index_ref
        self.fs_tools = fs_tools
        self.vectorizer = vectorizer
        self.show_progress = show_progress
        self.logger = logger_ or logging.getLogger(__name__)

    def run(self, root_dir: str = ".") -> ReindexSummary:
        started = time.time()
        stats = BuildStats()
        with self.index_ref.rebuild_lock:
            index = build_index(
                self.fs_tools,
                self.vectorizer,
                root_dir=root_dir,
                show_progress=self.show_progress,
                stats=stats,
            )
            self.index_ref.publish(index)

        elapsed = time.time() - started
        self.logger.info(
            "ReindexService completed",
            extra={"indexed_chunks": len(index), "elapsed_sec": round(elapsed, 2)},
        )
        return ReindexSummary(
            indexed_files=stats.indexed_files,
            skipped_files=stats.skipped_files,
            indexed_chunks=len(index),
            elapsed_sec=elapsed,
        )


__all__ = ["build_index", "BuildStats", "ReindexService", "ReindexSummary"]
