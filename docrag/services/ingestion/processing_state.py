"""In-memory record of what ingestion has done since process start.

Holds running counters, a bounded buffer of the most recently processed
documents (newest first), an unbounded error list, the time of the last
successful document and the outcome of the last bulk run.  Only the
ingestion orchestrator mutates it; readers take an immutable
:class:`~docrag.models.ingestion.ProcessingStateSnapshot`.
State is lost on restart.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from docrag.models.ingestion import (
    ProcessingErrorRecord,
    ProcessingStateSnapshot,
    RecentDocument,
    RunRecord,
)

logger = structlog.get_logger(logger_name=__name__)


@dataclass
class _Counters:
    """Internal running totals; never exposed directly."""

    total_documents: int = 0
    total_chunks: int = 0
    last_processed: datetime | None = None
    is_processing: bool = False
    runs_completed: int = 0
    last_run: RunRecord | None = None
    errors: list[ProcessingErrorRecord] = field(default_factory=list)


class ProcessingStateTracker:
    """Tracks ingestion counters, recent documents and errors.

    Parameters
    ----------
    recent_limit:
        How many recent document summaries to keep (default 20).
    """

    def __init__(self, recent_limit: int = 20) -> None:
        self._counters = _Counters()
        self._recent: deque[RecentDocument] = deque(maxlen=max(1, recent_limit))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record_document(
        self,
        namespace: str,
        filename: str,
        chunks: int,
        pages: int = 1,
        media_type: str = "",
    ) -> None:
        """Count one successfully ingested document."""
        now = datetime.now(timezone.utc)
        self._counters.total_documents += 1
        self._counters.total_chunks += chunks
        self._counters.last_processed = now
        # appendleft keeps the newest first; maxlen drops the oldest.
        self._recent.appendleft(
            RecentDocument(
                namespace=namespace,
                filename=filename,
                chunks=chunks,
                pages=pages,
                media_type=media_type,
                processed_at=now,
            )
        )

    def record_error(self, namespace: str, filename: str | None, error: str) -> None:
        """Append an error entry; the list is never truncated."""
        self._counters.errors.append(
            ProcessingErrorRecord(
                namespace=namespace,
                filename=filename,
                error=error,
                timestamp=datetime.now(timezone.utc),
            )
        )
        logger.debug("processing_error_recorded", namespace=namespace, filename=filename)

    def mark_run_complete(self, processed: int, failed: int, chunks: int = 0) -> None:
        """Record the outcome of a finished bulk run."""
        self._counters.runs_completed += 1
        self._counters.last_run = RunRecord(
            completed_at=datetime.now(timezone.utc),
            processed=processed,
            failed=failed,
            chunks=chunks,
        )

    def set_processing(self, active: bool) -> None:
        self._counters.is_processing = active

    @property
    def total_documents(self) -> int:
        return self._counters.total_documents

    @property
    def total_chunks(self) -> int:
        return self._counters.total_chunks

    def snapshot(self) -> ProcessingStateSnapshot:
        """Return an immutable copy of the current state."""
        counters = self._counters
        return ProcessingStateSnapshot(
            total_documents=counters.total_documents,
            total_chunks=counters.total_chunks,
            recent_documents=list(self._recent),
            errors=list(counters.errors),
            last_processed=counters.last_processed,
            is_processing=counters.is_processing,
            runs_completed=counters.runs_completed,
            last_run=counters.last_run,
        )
