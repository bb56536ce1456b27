"""Abstract base class for vector index backends.

A vector index stores :class:`~docrag.models.rag.VectorRecord` objects and
answers cosine-similarity queries, optionally restricted to one namespace.
Two tagged implementations exist and one is chosen at startup:

* ``"qdrant"`` -- :class:`~docrag.providers.vector_index.qdrant_index.QdrantVectorIndex`,
  an approximate-nearest-neighbour service that filters server-side.
* ``"memory"`` -- :class:`~docrag.providers.vector_index.memory_index.InMemoryVectorIndex`,
  a linear scan over an in-process snapshot.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection

from docrag.models.rag import SearchResult, VectorRecord


class IVectorIndex(ABC):
    """Contract for vector index backends used by ingestion and retrieval.

    All methods are async so that network-backed indexes never block the
    event loop.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backend (e.g. verify or create the collection).

        Raises
        ------
        docrag.utils.errors.IndexUnavailableError
            If the backend cannot be reached.
        """

    @abstractmethod
    async def upsert(self, records: list[VectorRecord]) -> int:
        """Store *records* and return how many were written.

        A record whose ``record_id`` is already stored replaces it.

        Raises
        ------
        docrag.utils.errors.DimensionMismatchError
            If any vector's length differs from :meth:`get_dimension`.
        docrag.utils.errors.VectorIndexError
            If the write fails.
        """

    @abstractmethod
    async def search(
        self,
        vector: list[float],
        limit: int,
        score_threshold: float,
        namespace: str | None = None,
    ) -> list[SearchResult]:
        """Return up to *limit* records with similarity >= *score_threshold*.

        Parameters
        ----------
        vector:
            The query embedding.
        limit:
            Maximum number of candidates to return.
        score_threshold:
            Minimum cosine similarity for a candidate to be returned.
        namespace:
            When given, only records whose ``metadata.namespace`` equals it
            are considered.

        Returns
        -------
        list[SearchResult]
            Candidates sorted by similarity, highest first.
        """

    @abstractmethod
    async def delete_document(
        self,
        namespace: str,
        filename: str,
        keep_ids: Collection[str] = (),
    ) -> int:
        """Remove the records of one document and return how many were removed.

        Records whose id is in *keep_ids* survive; the ingestion pipeline
        passes the ids it just wrote so only the stale version is removed.
        """

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored records."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the vector dimensionality this index accepts."""

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return the backend tag, ``"qdrant"`` or ``"memory"``."""
