"""FastAPI route definitions for the docrag ops API.

Every route reads the assembled :class:`DocumentService` from
``request.app.state``; the facade is built once in the application lifespan.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from docrag import __version__
from docrag.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ProcessDocumentResponse,
    SearchResponse,
    SearchResultItem,
)
from docrag.models.ingestion import IngestionRunSummary, ProcessingStateSnapshot
from docrag.services.document_service import DocumentService
from docrag.utils.errors import ExtractionError, ObjectStoreError

router = APIRouter(prefix="/api/v1")


def _get_document_service(request: Request) -> DocumentService:
    return request.app.state.document_service


DocumentServiceDep = Annotated[DocumentService, Depends(_get_document_service)]


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health_check(service: DocumentServiceDep) -> HealthResponse:
    """Report collaborator availability, index size and processing state."""
    status = await service.get_health_status()
    overall = status.pop("status")
    return HealthResponse(status=overall, version=__version__, components=status)


@router.get(
    "/documents/search",
    response_model=SearchResponse,
    summary="Similarity search over ingested documents",
)
async def search_documents(
    service: DocumentServiceDep,
    q: Annotated[str, Query(min_length=1, description="Natural-language query")],
    top_k: Annotated[int, Query(ge=1, le=100)] = 5,
    namespace: Annotated[str | None, Query(description="Restrict to one namespace")] = None,
) -> SearchResponse:
    results = await service.search_documents(q, top_k=top_k, namespace_filter=namespace)
    items = [
        SearchResultItem(text=r.text, metadata=r.metadata, similarity=r.similarity)
        for r in results
    ]
    return SearchResponse(
        query=q,
        namespace=namespace,
        top_k=top_k,
        total=len(items),
        results=items,
    )


@router.post(
    "/documents/process",
    response_model=IngestionRunSummary,
    summary="Ingest every document in every configured namespace",
    responses={409: {"model": ErrorResponse}},
)
async def process_all_documents(service: DocumentServiceDep) -> IngestionRunSummary:
    if service.is_processing:
        raise HTTPException(status_code=409, detail="An ingestion run is already in progress")
    return await service.process_all_documents()


@router.post(
    "/documents/{namespace}/{name}/process",
    response_model=ProcessDocumentResponse,
    summary="Ingest a single document",
    responses={
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def process_document(
    namespace: str,
    name: str,
    service: DocumentServiceDep,
) -> ProcessDocumentResponse:
    try:
        result = await service.process_document(namespace, name)
    except ObjectStoreError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    except ExtractionError as exc:
        raise HTTPException(status_code=422, detail=exc.message) from exc

    return ProcessDocumentResponse(
        namespace=namespace,
        name=name,
        skipped=result is None,
        result=result,
    )


@router.get(
    "/documents/status",
    response_model=ProcessingStateSnapshot,
    summary="Processing counters, recent documents and errors",
)
async def processing_status(service: DocumentServiceDep) -> ProcessingStateSnapshot:
    return service.get_processing_state()
