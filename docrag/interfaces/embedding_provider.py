"""Abstract base class for text-embedding service providers.

Defines the contract for generating embedding vectors from text.  The
shipped implementation talks to any OpenAI-compatible ``/embeddings``
endpoint (OpenRouter by default); tests substitute deterministic fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation:
#   HTTPEmbeddingProvider -- OpenAI-compatible /embeddings over httpx
# Located in: docrag/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by ingestion and retrieval.

    Vectors produced here are stored by
    :class:`~docrag.interfaces.vector_index.IVectorIndex` implementations,
    so :meth:`get_dimension` must agree with the index dimensionality.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.  Implementations split the
            input into provider-sized batches internally.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.

        Raises
        ------
        docrag.utils.errors.EmbeddingProviderError
            If the provider answers with a non-success status.
        docrag.utils.errors.EmbeddingFormatError
            If the response shape is not recognised.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Embed one text (a single-element batch), e.g. a search query."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present)."""
