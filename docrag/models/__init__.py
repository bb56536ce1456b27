"""docrag domain models -- re-exports all public model classes.

    - documents.py  -- source objects and extracted text
    - rag.py        -- chunks, stored vector records, search results
    - ingestion.py  -- per-document results, run summaries, processing state
"""

from __future__ import annotations

from docrag.models.documents import Document, ExtractedDocument, StoredObject
from docrag.models.ingestion import (
    DocumentIngestionResult,
    IngestionFailure,
    IngestionRunSummary,
    ProcessingErrorRecord,
    ProcessingStateSnapshot,
    RecentDocument,
    RunRecord,
)
from docrag.models.rag import DocumentChunk, SearchResult, VectorRecord

__all__ = [
    # documents
    "Document",
    "ExtractedDocument",
    "StoredObject",
    # rag
    "DocumentChunk",
    "SearchResult",
    "VectorRecord",
    # ingestion
    "DocumentIngestionResult",
    "IngestionFailure",
    "IngestionRunSummary",
    "ProcessingErrorRecord",
    "ProcessingStateSnapshot",
    "RecentDocument",
    "RunRecord",
]
