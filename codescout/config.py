"""
Settings for codescout, read from the environment and an optional .env file.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Workspace, retrieval, model and timeout settings."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    openai_api_key: SecretStr | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_base_url: str | None = Field(default=None, alias="OPENAI_BASE_URL")
    llm_model_name: str = Field(default="gpt-4.1-mini", alias="LLM_MODEL_NAME")
    embedding_model_name: str = Field(default="text-embedding-3-small", alias="EMBEDDING_MODEL_NAME")

    vectorizer_backend: str = Field(default="hashing", alias="VECTORIZER_BACKEND")
    vector_dim: int = Field(default=1536, gt=0, alias="VECTOR_DIM")

    workspace_root: str = Field(default=".", alias="WORKSPACE_ROOT")

    chunk_window_lines: int = Field(default=1000, gt=0, alias="CHUNK_WINDOW_LINES")
    chunk_overlap_lines: int = Field(default=50, ge=0, alias="CHUNK_OVERLAP_LINES")

    search_default_limit: int = Field(default=10, gt=0, alias="SEARCH_DEFAULT_LIMIT")
    fuzzy_threshold: float = Field(default=0.6, ge=0.0, le=1.0, alias="FUZZY_THRESHOLD")
    grep_max_matches: int = Field(default=500, gt=0, alias="GREP_MAX_MATCHES")

    llm_timeout_sec: float = Field(default=120.0, gt=0, alias="LLM_TIMEOUT_SEC")
    tool_timeout_sec: float = Field(default=60.0, gt=0, alias="TOOL_TIMEOUT_SEC")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


settings = Settings()


def setup_logging() -> logging.Logger:
    """
    Configure root logging at LOG_LEVEL and quiet the HTTP client loggers.
    """
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    return logging.getLogger("codescout")


def public_settings() -> Dict[str, Any]:
    """
    Return settings without secrets for safe logging/inspection.
    """
    return settings.model_dump(
        exclude={"openai_api_key"},
        exclude_none=True,
    )


__all__ = ["Settings", "settings", "setup_logging", "public_settings"]
