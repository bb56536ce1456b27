"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources, in priority order:

  1. **Environment variables** -- e.g. ``EMBEDDING_API_KEY=sk-or-...``
  2. **.env file** -- key=value lines in the project root ``.env`` file

Field ``embedding_api_key`` maps to env var ``EMBEDDING_API_KEY``; list
fields such as ``document_namespaces`` are given as JSON
(``DOCUMENT_NAMESPACES='["n1", "u1"]'``).  Defaults apply when neither
source sets a value.
"""

from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docrag application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Embedding provider (OpenAI-compatible /embeddings endpoint) ===
    # Empty key = "not configured"; the provider reports itself unavailable.
    embedding_api_key: str = ""
    embedding_base_url: str = "https://openrouter.ai/api/v1"
    embedding_model: str = "openai/text-embedding-ada-002"
    embedding_dimensions: int = 1536
    embedding_batch_size: int = 10
    embedding_timeout_seconds: float = 30.0
    # Retries for transient failures only (transport errors, 429, 5xx).
    embedding_max_retries: int = 3
    embedding_retry_backoff_seconds: float = 1.0

    # === Chunking / retrieval ===
    document_chunk_size: int = 1000
    # Validated and reported, but the sentence accumulator does not slide.
    document_chunk_overlap: int = 200
    document_min_similarity: float = 0.7
    search_candidate_multiplier: int = 2

    # === Vector index ===
    vector_db_type: Literal["memory", "qdrant"] = "memory"
    vector_db_url: str = ""
    vector_db_api_key: str = ""
    vector_db_collection: str = "docrag_documents"
    vector_db_timeout_seconds: float = 10.0

    # === Document collections ===
    object_store_root: str = "./data/documents"
    document_namespaces: list[str] = ["n1", "u1"]
    replace_existing_documents: bool = True
    recent_documents_limit: int = 20

    # === Scheduled re-ingestion ===
    document_processing_schedule: str = "0 2 * * *"
    enable_auto_document_processing: bool = False

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_chunking(self) -> "Settings":
        if self.document_chunk_size <= 0:
            raise ValueError("document_chunk_size must be positive")
        if not 0 <= self.document_chunk_overlap < self.document_chunk_size:
            raise ValueError("document_chunk_overlap must be in [0, document_chunk_size)")
        if self.embedding_batch_size <= 0:
            raise ValueError("embedding_batch_size must be positive")
        return self

    def use_qdrant(self) -> bool:
        """Return True when the ANN backend is selected and has a URL to reach."""
        return self.vector_db_type == "qdrant" and bool(self.vector_db_url)
