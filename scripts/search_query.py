"""
CLI to search the code index by text query.

Example:
    python -m scripts.search_query --query "where is the retry policy configured" --limit 5
"""

from __future__ import annotations

import argparse

from codescout.config import settings, setup_logging
from codescout.embeddings import get_vectorizer
from codescout.indexing.index import IndexRef
from codescout.indexing.pipeline import ReindexService
from codescout.retrieval.ranker import Ranker
from codescout.tools.filesystem import FileSystemTools


def main() -> None:
    parser = argparse.ArgumentParser(description="Search indexed chunks by text query.")
    parser.add_argument("--query", "-q", required=True, help="Query text")
    parser.add_argument("--root", default=settings.workspace_root, help="Workspace root to index")
    parser.add_argument("--limit", type=int, default=settings.search_default_limit, help="How many results to return")
    parser.add_argument("--backend", default=None, help="Vectorizer backend: hashing or openai")
    args = parser.parse_args()

    setup_logging()
    vectorizer = get_vectorizer(args.backend)
    index_ref = IndexRef()
    ReindexService(index_ref, FileSystemTools(args.root), vectorizer).run()

    results = Ranker(vectorizer).search(index_ref.snapshot(), args.query, args.limit)
    if not results:
        print("No results")
        return

    for idx, hit in enumerate(results, start=1):
        score = f"{hit.score:.4f}" if hit.score is not None else "n/a"
        print(f"#{idx} score={score} {hit.file}:{hit.line}")
        print(f"    {hit.snippet}")


if __name__ == "__main__":
    main()
