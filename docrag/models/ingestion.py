"""Ingestion run reports and processing state models.

``DocumentIngestionResult`` describes one document pushed through the
pipeline; ``IngestionRunSummary`` is what a bulk run returns.  The
``ProcessingStateSnapshot`` is an immutable copy of the tracker's state,
safe to hand to the health endpoint while a run keeps mutating the tracker.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class DocumentIngestionResult(BaseModel):
    """Outcome of ingesting a single document."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(description="Namespace the document was read from.")
    filename: str = Field(description="Document name.")
    media_type: str = Field(description="File type of the document.")
    page_count: int = Field(default=1, ge=0, description="Pages reported by the extractor.")
    chunks_created: int = Field(default=0, ge=0, description="Chunks embedded and stored.")
    records_replaced: int = Field(
        default=0, ge=0, description="Stale records of an earlier version pruned after the upsert."
    )
    content_hash: str = Field(default="", description="SHA-256 of the document bytes.")
    ingestion_time: float = Field(
        default=0.0, ge=0.0, description="Wall-clock seconds spent on this document."
    )


class IngestionFailure(BaseModel):
    """One document (or namespace listing) that failed during a bulk run."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(description="Namespace being processed.")
    filename: str | None = Field(
        default=None, description="Failed document, or None when the listing itself failed."
    )
    error: str = Field(description="Error message.")
    error_type: str = Field(default="", description="Exception class name.")


class IngestionRunSummary(BaseModel):
    """Report returned by a bulk ingestion run.

    A run has no failure state of its own: per-document failures are
    listed in ``failures`` and ``success`` stays True.  ``success`` is
    False only when the run could not execute at all (``error`` set).
    """

    model_config = ConfigDict(frozen=True)

    success: bool = Field(default=True, description="False only when the run could not execute.")
    processed: int = Field(default=0, ge=0, description="Documents ingested successfully.")
    failed: int = Field(default=0, ge=0, description="Documents that failed.")
    total_documents: int = Field(
        default=0, ge=0, description="Documents processed since startup, across all runs."
    )
    total_chunks: int = Field(
        default=0, ge=0, description="Chunks stored since startup, across all runs."
    )
    run_chunks: int = Field(default=0, ge=0, description="Chunks stored during this run.")
    duration: float = Field(default=0.0, ge=0.0, description="Run duration in seconds.")
    timestamp: datetime = Field(description="When the run finished (UTC).")
    failures: list[IngestionFailure] = Field(default_factory=list)
    error: str | None = Field(default=None, description="Run-level error, if the run aborted.")


class RecentDocument(BaseModel):
    """Summary of a recently ingested document, kept in a bounded buffer."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    filename: str
    chunks: int = Field(ge=0)
    pages: int = Field(default=1, ge=0)
    media_type: str = ""
    processed_at: datetime


class ProcessingErrorRecord(BaseModel):
    """One recorded ingestion error."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    filename: str | None = None
    error: str
    timestamp: datetime


class RunRecord(BaseModel):
    """Outcome of the most recent bulk run, kept by the state tracker."""

    model_config = ConfigDict(frozen=True)

    completed_at: datetime
    processed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    chunks: int = Field(default=0, ge=0)


class ProcessingStateSnapshot(BaseModel):
    """Point-in-time copy of the processing state tracker."""

    model_config = ConfigDict(frozen=True)

    total_documents: int = Field(default=0, ge=0)
    total_chunks: int = Field(default=0, ge=0)
    recent_documents: list[RecentDocument] = Field(
        default_factory=list, description="Newest first."
    )
    errors: list[ProcessingErrorRecord] = Field(default_factory=list)
    last_processed: datetime | None = None
    is_processing: bool = False
    runs_completed: int = Field(default=0, ge=0, description="Bulk runs finished since startup.")
    last_run: RunRecord | None = Field(default=None, description="Most recent finished bulk run.")
