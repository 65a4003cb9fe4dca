"""
Vectorizer abstractions and factories.
"""

from codescout.config import settings
from codescout.embeddings.client import HashingVectorizer, OpenAIEmbeddingsVectorizer, Vectorizer

DEFAULT_VECTORIZER_BACKEND = settings.vectorizer_backend


def get_vectorizer(backend: str | None = None) -> Vectorizer:
    """
    Factory to obtain the configured Vectorizer instance.
    """
    name = (backend or DEFAULT_VECTORIZER_BACKEND).lower()
    if name == "hashing":
        return HashingVectorizer()
    if name == "openai":
        return OpenAIEmbeddingsVectorizer()
    raise ValueError(f"Unsupported vectorizer backend: {name}")


__all__ = [
    "DEFAULT_VECTORIZER_BACKEND",
    "get_vectorizer",
    "Vectorizer",
    "HashingVectorizer",
    "OpenAIEmbeddingsVectorizer",
]
