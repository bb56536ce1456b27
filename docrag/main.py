"""docrag FastAPI application entry point.

Wires providers and services together via dependency injection, configures
structured logging and exposes the ops API.  :func:`build_document_service`
is also used by the CLI so both entry points share one assembly path.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from docrag import __version__
from docrag.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from docrag.api.routes import router as api_router
from docrag.config.settings import Settings
from docrag.interfaces.embedding_provider import IEmbeddingProvider
from docrag.interfaces.object_store import IObjectStore
from docrag.interfaces.vector_index import IVectorIndex
from docrag.pipeline.scheduler import DocumentProcessingScheduler
from docrag.providers.embedding.http_embedding_provider import HTTPEmbeddingProvider
from docrag.providers.object_store.local_object_store import LocalObjectStore
from docrag.providers.vector_index.memory_index import InMemoryVectorIndex
from docrag.providers.vector_index.qdrant_index import QdrantVectorIndex
from docrag.services.document_service import DocumentService
from docrag.services.ingestion.chunker import TextChunker
from docrag.services.ingestion.extractor import DocumentExtractor
from docrag.services.ingestion.ingestion_service import IngestionService
from docrag.services.ingestion.processing_state import ProcessingStateTracker
from docrag.services.retrieval_service import RetrievalService
from docrag.utils.errors import IndexUnavailableError
from docrag.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Vector index selection
# ---------------------------------------------------------------------------


async def _build_vector_index(app_settings: Settings) -> IVectorIndex:
    """Select and initialize the vector index once, at startup.

    ``qdrant`` is used when configured and reachable; any initialization
    failure falls back to the in-process index for the process lifetime.
    """
    dimension = app_settings.embedding_dimensions
    if app_settings.use_qdrant():
        qdrant = QdrantVectorIndex(
            url=app_settings.vector_db_url,
            collection_name=app_settings.vector_db_collection,
            dimension=dimension,
            api_key=app_settings.vector_db_api_key,
            timeout=app_settings.vector_db_timeout_seconds,
        )
        try:
            await qdrant.initialize()
            return qdrant
        except IndexUnavailableError as exc:
            _logger.error("vector_index_fallback", reason=str(exc), backend="memory")
            await qdrant.aclose()
    elif app_settings.vector_db_type == "qdrant":
        _logger.warning(
            "vector_index_fallback",
            reason="VECTOR_DB_URL is not set",
            backend="memory",
        )

    memory = InMemoryVectorIndex(dimension=dimension)
    await memory.initialize()
    return memory


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


async def build_document_service(
    app_settings: Settings,
    *,
    object_store: IObjectStore | None = None,
    embedding_provider: IEmbeddingProvider | None = None,
    vector_index: IVectorIndex | None = None,
) -> DocumentService:
    """Construct every component and return the assembled facade.

    Any collaborator may be passed in explicitly (tests, scripts); the
    rest are built from *app_settings*.
    """
    object_store = object_store or LocalObjectStore(app_settings.object_store_root)
    embedding_provider = embedding_provider or HTTPEmbeddingProvider(settings=app_settings)
    if vector_index is None:
        vector_index = await _build_vector_index(app_settings)

    chunker = TextChunker(
        chunk_size=app_settings.document_chunk_size,
        chunk_overlap=app_settings.document_chunk_overlap,
    )
    state = ProcessingStateTracker(recent_limit=app_settings.recent_documents_limit)
    ingestion = IngestionService(
        object_store=object_store,
        extractor=DocumentExtractor(),
        chunker=chunker,
        embedding_provider=embedding_provider,
        vector_index=vector_index,
        state=state,
        namespaces=app_settings.document_namespaces,
        replace_existing=app_settings.replace_existing_documents,
    )
    retrieval = RetrievalService(
        embedding_provider=embedding_provider,
        vector_index=vector_index,
        min_similarity=app_settings.document_min_similarity,
        candidate_multiplier=app_settings.search_candidate_multiplier,
    )
    service = DocumentService(
        object_store=object_store,
        embedding_provider=embedding_provider,
        vector_index=vector_index,
        chunker=chunker,
        retrieval=retrieval,
        ingestion=ingestion,
        state=state,
        auto_processing=app_settings.enable_auto_document_processing,
    )
    service_scheduler = DocumentProcessingScheduler(
        job=service.process_all_documents,
        schedule=app_settings.document_processing_schedule,
        is_busy=lambda: ingestion.is_running,
    )
    service.attach_scheduler(service_scheduler)

    _logger.info(
        "document_service_ready",
        vector_index=vector_index.get_backend_name(),
        embeddings=embedding_provider.get_provider_name(),
        namespaces=app_settings.document_namespaces,
        auto_processing=app_settings.enable_auto_document_processing,
    )
    return service


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    document_service: DocumentService | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    When *document_service* is given it is used as-is and the lifespan
    neither builds nor shuts one down.
    """
    app_settings = app_settings or Settings()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        owned = document_service is None
        service = document_service or await build_document_service(app_settings)
        application.state.document_service = service
        application.state.settings = app_settings
        if owned:
            service.start()
        _logger.info("app_startup", version=__version__, environment=app_settings.app_env)

        yield

        if owned:
            await service.shutdown()
        _logger.info("app_shutdown")

    application = FastAPI(
        title="docrag API",
        version=__version__,
        description=(
            "Ingest PDF, text and markdown documents from namespaced collections "
            "into a vector index and answer namespace-scoped similarity queries."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

app = create_app()

if __name__ == "__main__":
    from docrag.config import settings

    uvicorn.run(
        "docrag.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
