"""Embedding provider implementations.

    HTTPEmbeddingProvider -- any OpenAI-compatible ``/embeddings`` endpoint
    (OpenRouter by default), batched, with retry on transient failures.
"""

from docrag.providers.embedding.http_embedding_provider import (
    HTTPEmbeddingProvider,
    normalize_embedding_response,
)

__all__ = ["HTTPEmbeddingProvider", "normalize_embedding_response"]
