"""Unit tests for ProcessingStateTracker."""

from __future__ import annotations

from docrag.services.ingestion.processing_state import ProcessingStateTracker


def test_counters_accumulate() -> None:
    tracker = ProcessingStateTracker()
    tracker.record_document("n1", "a.txt", chunks=3)
    tracker.record_document("n1", "b.pdf", chunks=5, pages=4, media_type="pdf")

    snapshot = tracker.snapshot()
    assert snapshot.total_documents == 2
    assert snapshot.total_chunks == 8
    assert snapshot.last_processed is not None
    assert snapshot.recent_documents[0].filename == "b.pdf"
    assert snapshot.recent_documents[0].pages == 4


def test_recent_buffer_keeps_newest_n() -> None:
    tracker = ProcessingStateTracker(recent_limit=3)
    for i in range(5):
        tracker.record_document("n1", f"doc{i}.txt", chunks=1)

    names = [doc.filename for doc in tracker.snapshot().recent_documents]
    assert names == ["doc4.txt", "doc3.txt", "doc2.txt"]
    assert tracker.total_documents == 5


def test_errors_are_never_truncated() -> None:
    tracker = ProcessingStateTracker(recent_limit=1)
    for i in range(30):
        tracker.record_error("n1", f"bad{i}.pdf", "boom")
    tracker.record_error("u1", None, "listing failed")

    errors = tracker.snapshot().errors
    assert len(errors) == 31
    assert errors[-1].filename is None


def test_snapshot_is_detached_from_later_updates() -> None:
    tracker = ProcessingStateTracker()
    tracker.set_processing(True)
    before = tracker.snapshot()

    tracker.record_document("n1", "a.txt", chunks=1)
    tracker.set_processing(False)

    assert before.is_processing is True
    assert before.total_documents == 0
    assert before.recent_documents == []


def test_run_completion_recorded() -> None:
    tracker = ProcessingStateTracker()
    assert tracker.snapshot().runs_completed == 0
    assert tracker.snapshot().last_run is None

    tracker.mark_run_complete(processed=4, failed=1, chunks=9)
    tracker.mark_run_complete(processed=2, failed=0)

    snapshot = tracker.snapshot()
    assert snapshot.runs_completed == 2
    assert snapshot.last_run.processed == 2
    assert snapshot.last_run.failed == 0
    assert snapshot.last_run.chunks == 0
    assert snapshot.last_run.completed_at.tzinfo is not None
