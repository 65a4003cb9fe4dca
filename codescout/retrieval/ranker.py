"""
Ranking over a CodeIndex: cosine similarity first, fuzzy text matching as a fallback.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

import numpy as np
from rapidfuzz import fuzz

from codescout.config import settings
from codescout.embeddings.client import Vectorizer
from codescout.indexing.index import Chunk, CodeIndex
from codescout.models.schemas import SearchResult

logger = logging.getLogger(__name__)

DEFAULT_FUZZY_THRESHOLD = settings.fuzzy_threshold


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine of the angle between ``a`` and ``b``; 0.0 when either norm is 0."""
    if a.shape != b.shape:
        return 0.0
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    value = float(np.dot(a, b)) / (norm_a * norm_b)
    return max(-1.0, min(1.0, value))


def _snippet(chunk: Chunk) -> str:
    first_line = chunk.text.split("\n", 1)[0]
    return first_line.strip()


def _to_result(chunk: Chunk, score: float | None) -> SearchResult:
    return SearchResult(file=chunk.file_path, line=chunk.start_line, snippet=_snippet(chunk), score=score)


class Ranker:
    """
    Orders indexed chunks by relevance to a query.

    Vector similarity is the default path. Fuzzy matching runs only when the
    index has no usable vectors or the query embeds to the zero vector; the
    two scores are never mixed.
    """

    def __init__(self, vectorizer: Vectorizer, fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD) -> None:
        self.vectorizer = vectorizer
        self.fuzzy_threshold = fuzzy_threshold

    def search(self, index: CodeIndex, query: str, limit: int) -> List[SearchResult]:
        if len(index) == 0:
            logger.warning("Codebase not indexed yet; returning no results")
            return []
        if limit < 1:
            return []

        if self._has_usable_vectors(index):
            try:
                query_vector = self.vectorizer.embed_text(query)
            except Exception as exc:
                logger.warning("Query embedding failed; using fuzzy fallback: %s", exc)
            else:
                if np.any(query_vector):
                    return self.vector_search(index, query_vector, limit)
                logger.info("Query embedding is empty; using fuzzy fallback")
        else:
            logger.info("Index has no usable vectors; using fuzzy fallback")

        return self.fuzzy_search(index, query, limit)

    @staticmethod
    def _has_usable_vectors(index: CodeIndex) -> bool:
        return any(np.any(vector) for vector in index.vectors.values())

    def vector_search(self, index: CodeIndex, query_vector: np.ndarray, limit: int) -> List[SearchResult]:
        scored: List[Tuple[float, int, Chunk]] = []
        order = {chunk.key: position for position, chunk in enumerate(index.chunks)}

        for key, vector in index.vectors.items():
            chunk = index.chunk_for(key)
            if chunk is None:
                continue
            scored.append((cosine_similarity(query_vector, vector), order[key], chunk))

        scored.sort(key=lambda item: (-item[0], item[1]))
        results = [_to_result(chunk, score) for score, _, chunk in scored[:limit]]
        logger.info(
            "Vector search",
            extra={"candidates": len(scored), "returned": len(results)},
        )
        return results

    def fuzzy_search(self, index: CodeIndex, query: str, limit: int) -> List[SearchResult]:
        needle = query.strip().lower()
        if not needle:
            return []

        matches: List[Tuple[float, int, Chunk]] = []
        for position, chunk in enumerate(index.chunks):
            ratio = fuzz.partial_ratio(needle, chunk.text.lower())
            distance = 1.0 - ratio / 100.0
            if distance <= self.fuzzy_threshold:
                matches.append((distance, position, chunk))

        matches.sort(key=lambda item: (item[0], item[1]))
        results = [_to_result(chunk, 1.0 - distance) for distance, _, chunk in matches[:limit]]
        logger.info(
            "Fuzzy search",
            extra={"candidates": len(index), "returned": len(results)},
        )
        return results


def search(
    index: CodeIndex,
    query: str,
    limit: int,
    vectorizer: Vectorizer,
    fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD,
) -> List[SearchResult]:
    return Ranker(vectorizer, fuzzy_threshold=fuzzy_threshold).search(index, query, limit)


__all__ = ["Ranker", "search", "cosine_similarity", "DEFAULT_FUZZY_THRESHOLD"]
