"""Orchestrator for the document ingestion pipeline.

Pipeline stages per document: **download -> extract -> chunk -> embed -> store**.

The :class:`IngestionService` coordinates the object store, extractor,
chunker, embedding provider and vector index without any of them knowing
about each other.  All collaborators are injected through the constructor,
so tests swap in fakes without touching module globals.

A bulk run walks every configured namespace in order and processes its
documents one at a time.  A failing document is recorded and skipped; the
run itself always completes with a summary that lists the failures.  Runs
are serialized by an ``asyncio.Lock``.
"""

from __future__ import annotations

import asyncio
import hashlib
import time
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from docrag.models.ingestion import (
    DocumentIngestionResult,
    IngestionFailure,
    IngestionRunSummary,
)
from docrag.models.rag import VectorRecord
from docrag.services.ingestion.extractor import is_supported, media_type_for
from docrag.utils.errors import (
    DimensionMismatchError,
    DocRAGError,
    EmbeddingFormatError,
)
from docrag.utils.logging import log_context

if TYPE_CHECKING:
    from docrag.interfaces.embedding_provider import IEmbeddingProvider
    from docrag.interfaces.object_store import IObjectStore
    from docrag.interfaces.vector_index import IVectorIndex
    from docrag.services.ingestion.chunker import TextChunker
    from docrag.services.ingestion.extractor import DocumentExtractor
    from docrag.services.ingestion.processing_state import ProcessingStateTracker

logger = structlog.get_logger(logger_name=__name__)


class IngestionService:
    """Runs documents from namespaced collections into the vector index.

    Parameters
    ----------
    object_store:
        Lists namespaces and downloads document bytes.
    extractor:
        Turns bytes into plain text (PDF, text, markdown).
    chunker:
        Splits text into sentence-aligned chunks.
    embedding_provider:
        Generates one vector per chunk.
    vector_index:
        Stores the resulting vector records.
    state:
        Processing state tracker updated after every document.
    namespaces:
        Namespaces walked by :meth:`process_all_documents`, in order.
    replace_existing:
        When True, the new records are written under deterministic ids and
        the document's other records are pruned afterwards, so re-ingestion
        is idempotent.  When False, every ingestion writes fresh ids and
        re-ingestion appends a second copy on either backend.
    """

    def __init__(
        self,
        object_store: IObjectStore,
        extractor: DocumentExtractor,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        vector_index: IVectorIndex,
        state: ProcessingStateTracker,
        namespaces: Sequence[str],
        replace_existing: bool = True,
    ) -> None:
        self._object_store = object_store
        self._extractor = extractor
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._vector_index = vector_index
        self._state = state
        self._namespaces = list(namespaces)
        self._replace_existing = replace_existing
        self._run_lock = asyncio.Lock()

    @property
    def namespaces(self) -> list[str]:
        return list(self._namespaces)

    @property
    def is_running(self) -> bool:
        """True while a bulk run or a single-document run holds the lock."""
        return self._run_lock.locked()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_all_documents(self) -> IngestionRunSummary:
        """Ingest every supported document in every configured namespace.

        Never raises for a document-level failure: those are counted in
        ``failed`` and listed in ``failures``.
        """
        async with self._run_lock:
            self._state.set_processing(True)
            try:
                with log_context(run_id=uuid.uuid4().hex[:12]):
                    return await self._run_all()
            finally:
                self._state.set_processing(False)

    async def process_document(self, namespace: str, name: str) -> DocumentIngestionResult | None:
        """Ingest a single document.

        Returns ``None`` when the document's extension is unsupported.
        Errors are recorded in the processing state and then propagated.
        """
        async with self._run_lock:
            self._state.set_processing(True)
            try:
                return await self._ingest_document(namespace, name)
            finally:
                self._state.set_processing(False)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run_all(self) -> IngestionRunSummary:
        start = time.monotonic()
        processed = 0
        run_chunks = 0
        failures: list[IngestionFailure] = []

        logger.info("ingestion_run_started", namespaces=self._namespaces)

        for namespace in self._namespaces:
            try:
                objects = await self._object_store.list_objects(namespace)
            except DocRAGError as exc:
                logger.error("namespace_listing_failed", namespace=namespace, error=str(exc))
                self._state.record_error(namespace, None, str(exc))
                failures.append(
                    IngestionFailure(
                        namespace=namespace, error=str(exc), error_type=type(exc).__name__
                    )
                )
                continue

            candidates = [obj for obj in objects if is_supported(obj.name)]
            logger.info(
                "namespace_listed",
                namespace=namespace,
                objects=len(objects),
                supported=len(candidates),
            )

            for obj in candidates:
                try:
                    result = await self._ingest_document(namespace, obj.name)
                except Exception as exc:
                    # Already logged and recorded; move on to the next document.
                    failures.append(
                        IngestionFailure(
                            namespace=namespace,
                            filename=obj.name,
                            error=str(exc),
                            error_type=type(exc).__name__,
                        )
                    )
                    continue
                if result is not None:
                    processed += 1
                    run_chunks += result.chunks_created

        failed = sum(1 for failure in failures if failure.filename is not None)
        self._state.mark_run_complete(processed=processed, failed=failed, chunks=run_chunks)
        summary = IngestionRunSummary(
            success=True,
            processed=processed,
            failed=failed,
            total_documents=self._state.total_documents,
            total_chunks=self._state.total_chunks,
            run_chunks=run_chunks,
            duration=round(time.monotonic() - start, 3),
            timestamp=datetime.now(timezone.utc),
            failures=failures,
        )
        logger.info(
            "ingestion_run_complete",
            processed=summary.processed,
            failed=summary.failed,
            run_chunks=summary.run_chunks,
            duration=summary.duration,
        )
        return summary

    async def _ingest_document(self, namespace: str, name: str) -> DocumentIngestionResult | None:
        try:
            with log_context(namespace=namespace, document=name):
                return await self._pipeline(namespace, name)
        except Exception as exc:
            logger.error(
                "document_processing_failed",
                namespace=namespace,
                filename=name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            self._state.record_error(namespace, name, str(exc))
            raise

    async def _pipeline(self, namespace: str, name: str) -> DocumentIngestionResult | None:
        start = time.monotonic()

        media_type = media_type_for(name)
        if media_type is None:
            logger.info("document_skipped_unsupported", namespace=namespace, filename=name)
            return None

        content = await self._object_store.download(namespace, name)

        # PDF parsing is CPU-bound; keep it off the event loop.
        extracted = await asyncio.to_thread(self._extractor.extract, content, name)
        if extracted is None:
            return None

        content_hash = hashlib.sha256(content).hexdigest()
        chunks = self._chunker.chunk(
            extracted.text,
            {
                "namespace": namespace,
                "filename": name,
                "media_type": media_type,
                "page_count": extracted.page_count,
                "title": extracted.title,
                "content_hash": content_hash,
                "processed_at": datetime.now(timezone.utc),
            },
        )

        vectors = await self._embedding_provider.embed([chunk.text for chunk in chunks])
        if len(vectors) != len(chunks):
            raise EmbeddingFormatError(
                message=f"Expected {len(chunks)} embeddings, received {len(vectors)}",
                provider_name=self._embedding_provider.get_provider_name(),
            )

        # Validate before writing so a bad batch leaves the index untouched.
        dimension = self._vector_index.get_dimension()
        for vector in vectors:
            if len(vector) != dimension:
                raise DimensionMismatchError(
                    expected=dimension,
                    actual=len(vector),
                    provider_name=self._vector_index.get_backend_name(),
                )

        # Replacement reuses deterministic ids; append mode makes every ingestion distinct.
        nonce = "" if self._replace_existing else uuid.uuid4().hex
        records = [
            VectorRecord.from_chunk(chunk, vector, nonce) for chunk, vector in zip(chunks, vectors)
        ]

        # Write the new version first, then prune the old one, so a failed
        # write leaves the previous version searchable.
        await self._vector_index.upsert(records)
        replaced = 0
        if self._replace_existing:
            replaced = await self._vector_index.delete_document(
                namespace, name, keep_ids={record.record_id for record in records}
            )

        self._state.record_document(
            namespace=namespace,
            filename=name,
            chunks=len(records),
            pages=extracted.page_count,
            media_type=media_type,
        )

        elapsed = time.monotonic() - start
        logger.info(
            "document_processed",
            namespace=namespace,
            filename=name,
            chunks=len(records),
            replaced=replaced,
            pages=extracted.page_count,
            elapsed_s=round(elapsed, 3),
        )
        return DocumentIngestionResult(
            namespace=namespace,
            filename=name,
            media_type=media_type,
            page_count=extracted.page_count,
            chunks_created=len(records),
            records_replaced=replaced,
            content_hash=content_hash,
            ingestion_time=round(elapsed, 3),
        )
