"""Request/response schemas for the docrag ops API.

Run reports and processing state reuse the domain models from
:mod:`docrag.models.ingestion` directly; only API-specific envelopes are
defined here.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from docrag.models.ingestion import DocumentIngestionResult


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    components: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


class SearchResultItem(BaseModel):
    """One ranked passage."""

    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    similarity: float


class SearchResponse(BaseModel):
    """Results of a similarity query, best first."""

    query: str
    namespace: str | None = None
    top_k: int
    total: int
    results: list[SearchResultItem]


class ProcessDocumentResponse(BaseModel):
    """Outcome of a single-document ingestion request."""

    namespace: str
    name: str
    skipped: bool = Field(
        default=False, description="True when the file type is not supported."
    )
    result: DocumentIngestionResult | None = None
