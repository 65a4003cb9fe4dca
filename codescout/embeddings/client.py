"""
Vectorizers: the default hashed bag-of-words sketch and an OpenAI embeddings backend.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence

import numpy as np
from openai import OpenAI

from codescout.config import settings

DEFAULT_VECTOR_DIM = settings.vector_dim
DEFAULT_EMBEDDING_MODEL = settings.embedding_model_name
DEFAULT_EMBED_BATCH_SIZE = 64

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


class Vectorizer(Protocol):
    dim: int

    def embed_text(self, text: str) -> np.ndarray:
        ...

    def embed_texts(self, texts: Sequence[str]) -> List[np.ndarray]:
        ...


def stable_hash(token: str) -> int:
    """
    Polynomial ``h = h * 31 + unit`` over UTF-16 code units, wrapped to a signed
    32-bit integer, returned as its absolute value.
    """
    data = token.encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & _INT32_MASK
    if h & _INT32_SIGN:
        h -= 1 << 32
    return abs(h)


def l2_normalize(vector: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(vector))
    if norm > 0:
        return vector / norm
    return vector


class HashingVectorizer:
    """
    Deterministic bag-of-hashed-words sketch. No model call is made; similarity
    reflects coarse term overlap only.
    """

    def __init__(self, dim: int = DEFAULT_VECTOR_DIM) -> None:
        if dim <= 0:
            raise ValueError(f"dim must be positive, got {dim}")
        self.dim = dim

    def embed_text(self, text: str) -> np.ndarray:
        counts = np.zeros(self.dim, dtype=np.float32)
        for token in text.lower().split():
            counts[stable_hash(token) % self.dim] += 1.0
        return l2_normalize(counts)

    def embed_texts(self, texts: Sequence[str]) -> List[np.ndarray]:
        return [self.embed_text(text) for text in texts]


class OpenAIEmbeddingsVectorizer:
    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        batch_size: int = DEFAULT_EMBED_BATCH_SIZE,
        dim: int = DEFAULT_VECTOR_DIM,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model
        self.batch_size = batch_size
        self.dim = dim
        api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
        self.client = client or OpenAI(
            api_key=api_key,
            base_url=settings.openai_base_url,
            timeout=settings.llm_timeout_sec,
        )

    def embed_texts(self, texts: Sequence[str]) -> List[np.ndarray]:
        if not texts:
            return []

        embeddings: List[np.ndarray] = []
        for i in range(0, len(texts), self.batch_size):
            batch = list(texts[i : i + self.batch_size])
            response = self.client.embeddings.create(model=self.model, input=batch)
            embeddings.extend(np.asarray(item.embedding, dtype=np.float32) for item in response.data)
        return embeddings

    def embed_text(self, text: str) -> np.ndarray:
        vectors = self.embed_texts([text])
        return vectors[0] if vectors else np.zeros(self.dim, dtype=np.float32)


__all__ = [
    "Vectorizer",
    "HashingVectorizer",
    "OpenAIEmbeddingsVectorizer",
    "stable_hash",
    "l2_normalize",
    "DEFAULT_VECTOR_DIM",
    "DEFAULT_EMBEDDING_MODEL",
]
