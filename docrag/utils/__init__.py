"""Utility modules for docrag.

- **errors** -- Exception hierarchy rooted at DocRAGError; each pipeline
  stage raises its own subclass so callers can isolate failures per
  document without broad ``except Exception`` blocks.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from docrag.utils.errors import (
    ConfigurationError,
    DimensionMismatchError,
    DocRAGError,
    EmbeddingFormatError,
    EmbeddingProviderError,
    ExtractionError,
    IndexUnavailableError,
    ObjectStoreError,
    SearchError,
    VectorIndexError,
)
from docrag.utils.logging import configure_logging, get_logger, log_context

__all__ = [
    "ConfigurationError",
    "DimensionMismatchError",
    "DocRAGError",
    "EmbeddingFormatError",
    "EmbeddingProviderError",
    "ExtractionError",
    "IndexUnavailableError",
    "ObjectStoreError",
    "SearchError",
    "VectorIndexError",
    "configure_logging",
    "get_logger",
    "log_context",
]
