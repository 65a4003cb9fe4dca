"""
CLI to index a code tree and report what was indexed.

Example:
    python -m scripts.reindex_codebase --root . --progress
"""

from __future__ import annotations

import argparse
import logging
import sys

from codescout.config import settings, setup_logging
from codescout.embeddings import get_vectorizer
from codescout.indexing.index import IndexRef
from codescout.indexing.pipeline import ReindexService
from codescout.tools.filesystem import FileSystemTools


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the in-memory code index and print statistics.")
    parser.add_argument("--root", default=settings.workspace_root, help="Workspace root to index.")
    parser.add_argument("--backend", default=None, help="Vectorizer backend: hashing or openai.")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar while indexing.")
    return parser.parse_args()


def main() -> None:
    setup_logging()
    logger = logging.getLogger(__name__)
    args = parse_args()

    index_ref = IndexRef()
    service = ReindexService(
        index_ref,
        FileSystemTools(args.root),
        get_vectorizer(args.backend),
        show_progress=args.progress,
        logger_=logger,
    )

    try:
        summary = service.run()
    except Exception:
        logger.exception("Indexing failed")
        sys.exit(1)

    index = index_ref.snapshot()
    print(
        f"Indexed {summary.indexed_chunks} chunks from {summary.indexed_files} files "
        f"({summary.skipped_files} skipped, elapsed {summary.elapsed_sec:.2f}s)"
    )
    for path in index.files():
        print(f"  {path}")


if __name__ == "__main__":
    main()
