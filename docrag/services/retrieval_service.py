"""Namespace-scoped semantic search over the vector index.

Query flow:
  1. EMBED    -- the query text, as a single-element batch.
  2. FETCH    -- ``top_k * candidate_multiplier`` candidates from the
                 active index with the threshold and namespace filter
                 pushed down (the ANN backend may drop some after
                 filtering; the in-process backend returns the full
                 filtered, thresholded set up to that limit).
  3. RE-CHECK -- threshold and namespace again, whatever the backend did.
  4. RANK     -- similarity descending, truncated to ``top_k``.

Search never raises: any failure is logged and yields an empty list, so a
broken embedding provider degrades retrieval instead of failing callers.
"""

from __future__ import annotations

import structlog

from docrag.interfaces.embedding_provider import IEmbeddingProvider
from docrag.interfaces.vector_index import IVectorIndex
from docrag.models.rag import SearchResult
from docrag.utils.errors import SearchError

logger = structlog.get_logger(logger_name=__name__)


class RetrievalService:
    """Answers similarity queries against the active vector index.

    Parameters
    ----------
    embedding_provider:
        Embeds query text.
    vector_index:
        The index selected at startup.
    min_similarity:
        Results below this cosine similarity are never returned.
    candidate_multiplier:
        How many candidates to request per wanted result.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        vector_index: IVectorIndex,
        min_similarity: float = 0.7,
        candidate_multiplier: int = 2,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._vector_index = vector_index
        self._min_similarity = min_similarity
        self._candidate_multiplier = max(1, candidate_multiplier)

    @property
    def min_similarity(self) -> float:
        return self._min_similarity

    async def search(
        self,
        query: str,
        top_k: int = 5,
        namespace: str | None = None,
    ) -> list[SearchResult]:
        """Return at most *top_k* results for *query*, best first."""
        if top_k <= 0 or not query or not query.strip():
            return []

        try:
            return await self._search(query, top_k, namespace)
        except SearchError as exc:
            logger.error("document_search_failed", error=str(exc), namespace=namespace)
            return []

    async def _search(self, query: str, top_k: int, namespace: str | None) -> list[SearchResult]:
        try:
            query_vector = await self._embedding_provider.embed_single(query)
            candidates = await self._vector_index.search(
                query_vector,
                limit=top_k * self._candidate_multiplier,
                score_threshold=self._min_similarity,
                namespace=namespace,
            )
        except Exception as exc:
            raise SearchError(
                message=f"Search failed: {type(exc).__name__}: {exc}",
                provider_name=getattr(exc, "provider_name", None),
            ) from exc

        filtered = [
            candidate
            for candidate in candidates
            if candidate.similarity >= self._min_similarity
            and (namespace is None or candidate.metadata.get("namespace") == namespace)
        ]
        filtered.sort(key=lambda result: result.similarity, reverse=True)
        results = filtered[:top_k]

        logger.info(
            "document_search_complete",
            namespace=namespace,
            candidates=len(candidates),
            returned=len(results),
            top_similarity=results[0].similarity if results else None,
        )
        return results
