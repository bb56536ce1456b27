"""Qdrant vector index adapter.

Wraps ``qdrant_client.AsyncQdrantClient`` to implement :class:`IVectorIndex`.
The collection is created on first use with cosine distance and the
configured dimensionality.  Namespace filtering and the score threshold are
pushed down to Qdrant, so returned candidates are already above threshold.

Payload layout per point::

    {"text": "...", "metadata": {"namespace": "n1", "filename": "a.pdf", ...}}
"""

from __future__ import annotations

from collections.abc import Collection

import structlog
from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models as rest

from docrag.interfaces.vector_index import IVectorIndex
from docrag.models.rag import SearchResult, VectorRecord
from docrag.utils.errors import (
    DimensionMismatchError,
    IndexUnavailableError,
    VectorIndexError,
)

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER_NAME = "qdrant"


def _namespace_condition(namespace: str) -> rest.FieldCondition:
    return rest.FieldCondition(key="metadata.namespace", match=rest.MatchValue(value=namespace))


def _document_filter(namespace: str, filename: str, keep_ids: Collection[str] = ()) -> rest.Filter:
    return rest.Filter(
        must=[
            _namespace_condition(namespace),
            rest.FieldCondition(key="metadata.filename", match=rest.MatchValue(value=filename)),
        ],
        must_not=[rest.HasIdCondition(has_id=list(keep_ids))] if keep_ids else None,
    )


class QdrantVectorIndex(IVectorIndex):
    """Vector index backed by a Qdrant collection (approximate nearest neighbour)."""

    def __init__(
        self,
        url: str,
        collection_name: str,
        dimension: int,
        api_key: str | None = None,
        timeout: float = 10.0,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        self._url = url
        self._collection_name = collection_name
        self._dimension = dimension
        self._client = client or AsyncQdrantClient(
            url=url, api_key=api_key or None, timeout=int(timeout)
        )
        self._initialized = False

    # ------------------------------------------------------------------
    # IVectorIndex implementation
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Verify the collection exists, creating it when missing.

        Other operations call this lazily when it has not run yet.
        """
        try:
            response = await self._client.get_collections()
            existing = {collection.name for collection in response.collections}
            if self._collection_name not in existing:
                await self._client.create_collection(
                    collection_name=self._collection_name,
                    vectors_config=rest.VectorParams(
                        size=self._dimension, distance=rest.Distance.COSINE
                    ),
                )
                logger.info(
                    "qdrant_collection_created",
                    collection=self._collection_name,
                    dimension=self._dimension,
                )
        except Exception as exc:
            raise IndexUnavailableError(
                message=f"Cannot initialize Qdrant collection '{self._collection_name}' at {self._url}: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

        self._initialized = True
        logger.info("qdrant_index_ready", collection=self._collection_name, url=self._url)

    async def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0
        await self._ensure_initialized()
        for record in records:
            if len(record.vector) != self._dimension:
                raise DimensionMismatchError(
                    expected=self._dimension,
                    actual=len(record.vector),
                    provider_name=_PROVIDER_NAME,
                )

        points = [
            rest.PointStruct(id=record.record_id, vector=record.vector, payload=record.payload())
            for record in records
        ]
        try:
            await self._client.upsert(
                collection_name=self._collection_name, points=points, wait=True
            )
        except Exception as exc:
            raise VectorIndexError(
                message=f"Qdrant upsert failed: {exc}", provider_name=_PROVIDER_NAME
            ) from exc

        logger.debug("qdrant_upsert", collection=self._collection_name, points=len(points))
        return len(points)

    async def search(
        self,
        vector: list[float],
        limit: int,
        score_threshold: float,
        namespace: str | None = None,
    ) -> list[SearchResult]:
        await self._ensure_initialized()
        query_filter = (
            rest.Filter(must=[_namespace_condition(namespace)]) if namespace is not None else None
        )
        try:
            response = await self._client.query_points(
                collection_name=self._collection_name,
                query=vector,
                limit=limit,
                score_threshold=score_threshold,
                query_filter=query_filter,
                with_payload=True,
            )
        except Exception as exc:
            raise VectorIndexError(
                message=f"Qdrant search failed: {exc}", provider_name=_PROVIDER_NAME
            ) from exc

        results: list[SearchResult] = []
        for point in response.points:
            payload = point.payload or {}
            results.append(
                SearchResult(
                    text=payload.get("text", ""),
                    metadata=payload.get("metadata", {}),
                    similarity=point.score,
                )
            )
        return results

    async def delete_document(
        self,
        namespace: str,
        filename: str,
        keep_ids: Collection[str] = (),
    ) -> int:
        await self._ensure_initialized()
        doc_filter = _document_filter(namespace, filename, keep_ids)
        try:
            counted = await self._client.count(
                collection_name=self._collection_name, count_filter=doc_filter, exact=True
            )
            if counted.count == 0:
                return 0
            await self._client.delete(
                collection_name=self._collection_name,
                points_selector=rest.FilterSelector(filter=doc_filter),
                wait=True,
            )
        except Exception as exc:
            raise VectorIndexError(
                message=f"Qdrant delete failed for {namespace}/{filename}: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc
        return counted.count

    async def count(self) -> int:
        await self._ensure_initialized()
        try:
            counted = await self._client.count(
                collection_name=self._collection_name, exact=True
            )
        except Exception as exc:
            raise VectorIndexError(
                message=f"Qdrant count failed: {exc}", provider_name=_PROVIDER_NAME
            ) from exc
        return counted.count

    def get_dimension(self) -> int:
        return self._dimension

    def get_backend_name(self) -> str:
        return _PROVIDER_NAME

    async def aclose(self) -> None:
        await self._client.close()

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()
