"""Public facade over ingestion, retrieval and scheduling.

:class:`DocumentService` is the single object the HTTP API and the CLI
talk to.  It is assembled once by :func:`docrag.main.build_document_service`
with every collaborator injected, replacing process-wide singletons.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog

from docrag.models.ingestion import (
    DocumentIngestionResult,
    IngestionRunSummary,
    ProcessingStateSnapshot,
)
from docrag.models.rag import SearchResult

if TYPE_CHECKING:
    from docrag.interfaces.embedding_provider import IEmbeddingProvider
    from docrag.interfaces.object_store import IObjectStore
    from docrag.interfaces.vector_index import IVectorIndex
    from docrag.pipeline.scheduler import DocumentProcessingScheduler
    from docrag.services.ingestion.chunker import TextChunker
    from docrag.services.ingestion.ingestion_service import IngestionService
    from docrag.services.ingestion.processing_state import ProcessingStateTracker
    from docrag.services.retrieval_service import RetrievalService

logger = structlog.get_logger(logger_name=__name__)


class DocumentService:
    """Search, ingestion triggers and health reporting for document collections."""

    def __init__(
        self,
        object_store: IObjectStore,
        embedding_provider: IEmbeddingProvider,
        vector_index: IVectorIndex,
        chunker: TextChunker,
        retrieval: RetrievalService,
        ingestion: IngestionService,
        state: ProcessingStateTracker,
        scheduler: DocumentProcessingScheduler | None = None,
        auto_processing: bool = False,
    ) -> None:
        self._object_store = object_store
        self._embedding_provider = embedding_provider
        self._vector_index = vector_index
        self._chunker = chunker
        self._retrieval = retrieval
        self._ingestion = ingestion
        self._state = state
        self._scheduler = scheduler
        self._auto_processing = auto_processing

    @property
    def scheduler(self) -> DocumentProcessingScheduler | None:
        return self._scheduler

    @property
    def is_processing(self) -> bool:
        return self._ingestion.is_running

    def attach_scheduler(self, scheduler: DocumentProcessingScheduler) -> None:
        """Attach the scheduler that drives :meth:`process_all_documents`."""
        self._scheduler = scheduler

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    async def search_documents(
        self,
        query: str,
        top_k: int = 5,
        namespace_filter: str | None = None,
    ) -> list[SearchResult]:
        """Similarity search; never raises, returns ``[]`` on failure."""
        return await self._retrieval.search(query, top_k=top_k, namespace=namespace_filter)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def process_all_documents(self) -> IngestionRunSummary:
        """Run a bulk ingestion over every configured namespace.

        Document failures are reported in the summary.  Anything that stops
        the run itself is reported as ``success=False`` instead of raised.
        """
        try:
            return await self._ingestion.process_all_documents()
        except Exception as exc:
            logger.error("ingestion_run_aborted", error=str(exc), error_type=type(exc).__name__)
            self._state.record_error("*", None, str(exc))
            return IngestionRunSummary(
                success=False,
                total_documents=self._state.total_documents,
                total_chunks=self._state.total_chunks,
                timestamp=datetime.now(timezone.utc),
                error=str(exc),
            )

    async def process_document(self, namespace: str, name: str) -> DocumentIngestionResult | None:
        """Ingest one document; errors propagate to the caller."""
        return await self._ingestion.process_document(namespace, name)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start scheduled re-ingestion when auto-processing is enabled."""
        if self._auto_processing and self._scheduler is not None:
            self._scheduler.start()

    async def shutdown(self) -> None:
        """Stop the scheduler and close network clients."""
        if self._scheduler is not None:
            await self._scheduler.stop()
        for component in (self._embedding_provider, self._vector_index):
            close = getattr(component, "aclose", None)
            if close is not None:
                await close()

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def get_health_status(self) -> dict[str, Any]:
        """Report collaborator availability and processing state."""
        try:
            record_count: int | None = await self._vector_index.count()
            index_status = "healthy"
        except Exception as exc:
            logger.warning("vector_index_count_failed", error=str(exc))
            record_count = None
            index_status = "unavailable"

        snapshot = self._state.snapshot()
        scheduler = self._scheduler
        next_run = None
        if scheduler is not None and scheduler.is_started:
            next_run = scheduler.next_run_time().isoformat()

        object_store_ok = self._object_store.is_available()
        embeddings_ok = self._embedding_provider.is_available()
        healthy = object_store_ok and embeddings_ok and index_status == "healthy"

        return {
            "status": "healthy" if healthy else "degraded",
            "object_store": {
                "provider": self._object_store.get_provider_name(),
                "available": object_store_ok,
                "namespaces": self._ingestion.namespaces,
            },
            "embeddings": {
                "provider": self._embedding_provider.get_provider_name(),
                "available": embeddings_ok,
                "dimensions": self._embedding_provider.get_dimension(),
            },
            "vector_index": {
                "backend": self._vector_index.get_backend_name(),
                "status": index_status,
                "documents_count": record_count,
            },
            "chunking": {
                "chunk_size": self._chunker.chunk_size,
                "chunk_overlap": self._chunker.chunk_overlap,
                "min_similarity": self._retrieval.min_similarity,
            },
            "processing": {
                "auto_processing": self._auto_processing,
                "schedule": scheduler.schedule if scheduler is not None else None,
                "scheduler_running": scheduler.is_started if scheduler is not None else False,
                "next_run": next_run,
                "is_processing": snapshot.is_processing,
                "total_documents": snapshot.total_documents,
                "total_chunks": snapshot.total_chunks,
                "last_processed": (
                    snapshot.last_processed.isoformat() if snapshot.last_processed else None
                ),
                "errors": len(snapshot.errors),
                "runs_completed": snapshot.runs_completed,
                "last_run_at": (
                    snapshot.last_run.completed_at.isoformat() if snapshot.last_run else None
                ),
            },
        }

    def get_processing_state(self) -> ProcessingStateSnapshot:
        """Return an immutable snapshot of the processing state."""
        return self._state.snapshot()
