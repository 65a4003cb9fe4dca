"""Tests for ranking indexed chunks against a query."""

import numpy as np
import pytest

from codescout.indexing.index import Chunk, CodeIndex
from codescout.retrieval.ranker import Ranker, cosine_similarity, search


class FailingQueryVectorizer:
    dim = 1536

    def embed_text(self, text):
        raise RuntimeError("embedding service unavailable")

    def embed_texts(self, texts):
        raise RuntimeError("embedding service unavailable")


def _index(vectorizer, texts, with_vectors=True):
    chunks = tuple(Chunk(file_path=f"src/f{i}.ts", start_line=1, end_line=1, text=text) for i, text in enumerate(texts))
    vectors = {c.key: vectorizer.embed_text(c.text) for c in chunks} if with_vectors else {}
    return CodeIndex(chunks=chunks, vectors=vectors)


class TestCosineSimilarity:
    def test_self_similarity_is_one(self):
        v = np.array([0.3, 0.4, 0.5], dtype=np.float32)

        assert cosine_similarity(v, v) == pytest.approx(1.0)

    def test_bounded(self):
        rng = np.random.default_rng(7)
        for _ in range(20):
            a, b = rng.normal(size=16), rng.normal(size=16)
            assert -1.0 <= cosine_similarity(a, b) <= 1.0

    def test_zero_vector_scores_zero(self):
        assert cosine_similarity(np.zeros(3), np.ones(3)) == 0.0

    def test_shape_mismatch_scores_zero(self):
        assert cosine_similarity(np.ones(3), np.ones(4)) == 0.0


class TestVectorSearch:
    def test_empty_index_returns_nothing(self, vectorizer, caplog):
        assert Ranker(vectorizer).search(CodeIndex.empty(), "anything", 10) == []
        assert "not indexed" in caplog.text

    def test_best_match_first(self, vectorizer):
        index = _index(vectorizer, ["alpha beta", "gamma delta", "alpha gamma"])

        results = Ranker(vectorizer).search(index, "alpha beta", 10)

        assert results[0].file == "src/f0.ts"
        assert results[0].score == pytest.approx(1.0, abs=1e-6)
        assert results[0].snippet == "alpha beta"

    def test_scores_non_increasing_and_limited(self, vectorizer):
        index = _index(vectorizer, [f"token{i} shared" for i in range(12)])

        results = Ranker(vectorizer).search(index, "token3 shared", 5)

        assert len(results) == 5
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)
        assert all(-1.0 <= s <= 1.0 for s in scores)

    def test_limit_larger_than_index(self, vectorizer):
        index = _index(vectorizer, ["a b", "c d"])

        assert len(Ranker(vectorizer).search(index, "a", 50)) == 2

    def test_non_positive_limit(self, vectorizer):
        index = _index(vectorizer, ["a b"])

        assert Ranker(vectorizer).search(index, "a", 0) == []

    def test_ties_keep_index_order(self, vectorizer):
        index = _index(vectorizer, ["same text", "same text", "same text"])

        results = Ranker(vectorizer).search(index, "same text", 3)

        assert [r.file for r in results] == ["src/f0.ts", "src/f1.ts", "src/f2.ts"]

    def test_snippet_is_first_line_trimmed(self, vectorizer):
        index = _index(vectorizer, ["   export const answer = 42;  \nmore"])

        results = Ranker(vectorizer).search(index, "answer", 1)

        assert results[0].snippet == "export const answer = 42;"
        assert results[0].line == 1

    def test_module_level_search(self, vectorizer):
        index = _index(vectorizer, ["alpha", "beta"])

        results = search(index, "beta", 1, vectorizer)

        assert [r.file for r in results] == ["src/f1.ts"]


class TestFuzzyFallback:
    def test_used_when_index_has_no_vectors(self, vectorizer):
        index = _index(vectorizer, ["def parse_config(path):\n    return 1", "hello world"], with_vectors=False)

        results = Ranker(vectorizer).search(index, "parse_config", 5)

        assert [r.file for r in results] == ["src/f0.ts"]
        assert results[0].score == pytest.approx(1.0)

    def test_used_when_all_vectors_are_zero(self, vectorizer):
        chunks = (Chunk("a.py", 1, 1, "class TokenBucket:"),)
        index = CodeIndex(chunks=chunks, vectors={chunks[0].key: np.zeros(1536, dtype=np.float32)})

        results = Ranker(vectorizer).search(index, "TokenBucket", 5)

        assert len(results) == 1
        assert 0.0 < results[0].score <= 1.0

    def test_unrelated_text_is_dropped(self, vectorizer):
        index = _index(vectorizer, ["hello world"], with_vectors=False)

        assert Ranker(vectorizer).search(index, "zzzzqqqq", 5) == []

    def test_blank_query_matches_nothing(self, vectorizer):
        index = _index(vectorizer, ["hello world"])

        assert Ranker(vectorizer).search(index, "   ", 5) == []

    def test_better_matches_rank_first(self, vectorizer):
        index = _index(vectorizer, ["def load_settings():", "def load_config():"], with_vectors=False)

        results = Ranker(vectorizer, fuzzy_threshold=0.6).search(index, "load_config", 5)

        assert results[0].file == "src/f1.ts"
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_used_when_query_embedding_fails(self, vectorizer, caplog):
        index = _index(vectorizer, ["def parse_config(path):", "zzzz qqqq"])

        results = Ranker(FailingQueryVectorizer()).search(index, "parse_config", 5)

        assert [r.file for r in results] == ["src/f0.ts"]
        assert "Query embedding failed" in caplog.text
