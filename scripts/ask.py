"""
Run a single question through the tool-dispatch loop.

Example:
    python -m scripts.ask --question "How is @codescout/indexing/chunker.py used?"
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from codescout.agent.context import ContextExpander
from codescout.agent.dispatcher import ToolDispatchLoop
from codescout.config import public_settings, settings, setup_logging
from codescout.embeddings import get_vectorizer
from codescout.errors import ServiceFailure
from codescout.indexing.index import IndexRef
from codescout.indexing.pipeline import ReindexService
from codescout.llm.client import LLMClient
from codescout.retrieval.ranker import Ranker
from codescout.tools.filesystem import FileSystemTools
from codescout.tools.registry import ToolRegistry


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ask one question about a code tree.")
    parser.add_argument("--question", "-q", required=True, help="Question; use @path to inline a file")
    parser.add_argument("--root", default=settings.workspace_root, help="Workspace root")
    parser.add_argument("--show-history", action="store_true", help="Print the conversation turns afterwards")
    return parser.parse_args()


def build_loop(root: str) -> ToolDispatchLoop:
    fs_tools = FileSystemTools(root)
    vectorizer = get_vectorizer()
    index_ref = IndexRef()
    registry = ToolRegistry(fs_tools, index_ref, Ranker(vectorizer))
    return ToolDispatchLoop(
        llm_client=LLMClient(),
        registry=registry,
        expander=ContextExpander(fs_tools),
        reindex_service=ReindexService(index_ref, fs_tools, vectorizer),
    )


def main() -> None:
    setup_logging()
    logger = logging.getLogger(__name__)
    args = parse_args()
    logger.info("Loaded settings: %s", public_settings())

    loop = build_loop(args.root)
    try:
        answer = asyncio.run(loop.chat(args.question))
    except ServiceFailure:
        logger.exception("Model request failed")
        sys.exit(1)

    print("\n=== Answer ===")
    print(answer)

    if args.show_history:
        print("\n=== Conversation ===")
        for turn in loop.history:
            if turn.tool_calls:
                names = ", ".join(call.name for call in turn.tool_calls)
                print(f"[{turn.role}] tool calls: {names}")
            elif turn.tool_responses:
                for response in turn.tool_responses:
                    status = "ok" if response.ok else f"error: {response.error}"
                    print(f"[tool {response.name}] {status}")
            else:
                print(f"[{turn.role}] {(turn.text or '')[:200]}")


if __name__ == "__main__":
    main()
