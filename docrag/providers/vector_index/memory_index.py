"""In-process vector index.

Holds vector records in memory and answers queries with an exact linear
scan: cosine similarity between the query and every stored vector,
optionally pre-filtered by namespace, then thresholded and sorted.

Writers take an ``asyncio.Lock`` and publish a brand-new immutable snapshot
(records tuple + stacked numpy matrix); readers grab the current snapshot
reference once and never observe a half-applied write.  Nothing persists
beyond the process lifetime.
"""

from __future__ import annotations

import asyncio
from collections.abc import Collection
from dataclasses import dataclass

import numpy as np
import structlog

from docrag.interfaces.vector_index import IVectorIndex
from docrag.models.rag import SearchResult, VectorRecord
from docrag.utils.errors import DimensionMismatchError

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER_NAME = "memory"


@dataclass(frozen=True)
class _Snapshot:
    records: tuple[VectorRecord, ...]
    # Row i is records[i].vector; shape (len(records), dimension).
    matrix: np.ndarray
    norms: np.ndarray


def _build_snapshot(records: tuple[VectorRecord, ...], dimension: int) -> _Snapshot:
    if records:
        matrix = np.asarray([record.vector for record in records], dtype=np.float64)
    else:
        matrix = np.empty((0, dimension), dtype=np.float64)
    return _Snapshot(records=records, matrix=matrix, norms=np.linalg.norm(matrix, axis=1))


class InMemoryVectorIndex(IVectorIndex):
    """Vector index held entirely in process memory.

    Parameters
    ----------
    dimension:
        Length every stored vector must have.
    """

    def __init__(self, dimension: int) -> None:
        self._dimension = dimension
        self._lock = asyncio.Lock()
        self._snapshot = _build_snapshot((), dimension)

    # ------------------------------------------------------------------
    # IVectorIndex implementation
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        logger.info("memory_index_ready", dimension=self._dimension)

    async def upsert(self, records: list[VectorRecord]) -> int:
        """Replace records with matching ids in place; append the rest."""
        if not records:
            return 0
        for record in records:
            if len(record.vector) != self._dimension:
                raise DimensionMismatchError(
                    expected=self._dimension,
                    actual=len(record.vector),
                    provider_name=_PROVIDER_NAME,
                )

        incoming = {record.record_id: record for record in records}
        async with self._lock:
            current = self._snapshot.records
            replaced = tuple(incoming.pop(record.record_id, record) for record in current)
            merged = replaced + tuple(incoming.values())
            self._snapshot = _build_snapshot(merged, self._dimension)
        logger.debug("memory_index_upsert", added=len(records), total=len(merged))
        return len(records)

    async def search(
        self,
        vector: list[float],
        limit: int,
        score_threshold: float,
        namespace: str | None = None,
    ) -> list[SearchResult]:
        snapshot = self._snapshot
        if limit <= 0 or not snapshot.records:
            return []
        if len(vector) != self._dimension:
            raise DimensionMismatchError(
                expected=self._dimension, actual=len(vector), provider_name=_PROVIDER_NAME
            )

        if namespace is not None:
            rows = np.fromiter(
                (i for i, record in enumerate(snapshot.records) if record.namespace == namespace),
                dtype=np.intp,
            )
        else:
            rows = np.arange(len(snapshot.records), dtype=np.intp)
        if rows.size == 0:
            return []

        query = np.asarray(vector, dtype=np.float64)
        query_norm = float(np.linalg.norm(query))
        if query_norm == 0.0:
            return []

        dots = snapshot.matrix[rows] @ query
        denominators = snapshot.norms[rows] * query_norm
        similarities = np.divide(
            dots, denominators, out=np.zeros_like(dots), where=denominators > 0
        )

        keep = similarities >= score_threshold
        rows, similarities = rows[keep], similarities[keep]
        # Stable sort keeps insertion order among equal scores.
        order = np.argsort(-similarities, kind="stable")[:limit]

        return [
            SearchResult(
                text=snapshot.records[rows[i]].text,
                metadata=dict(snapshot.records[rows[i]].metadata),
                similarity=float(similarities[i]),
            )
            for i in order
        ]

    async def delete_document(
        self,
        namespace: str,
        filename: str,
        keep_ids: Collection[str] = (),
    ) -> int:
        keep = set(keep_ids)
        async with self._lock:
            current = self._snapshot.records
            kept = tuple(
                record
                for record in current
                if not (
                    record.namespace == namespace
                    and record.metadata.get("filename") == filename
                    and record.record_id not in keep
                )
            )
            removed = len(current) - len(kept)
            if removed:
                self._snapshot = _build_snapshot(kept, self._dimension)
        if removed:
            logger.debug(
                "memory_index_delete", namespace=namespace, filename=filename, removed=removed
            )
        return removed

    async def count(self) -> int:
        return len(self._snapshot.records)

    def get_dimension(self) -> int:
        return self._dimension

    def get_backend_name(self) -> str:
        return _PROVIDER_NAME
