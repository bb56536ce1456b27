"""Integration tests for the ops API via FastAPI's TestClient."""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from conftest import KeywordEmbeddingProvider
from docrag.main import build_document_service, create_app

_PYTHON_DOC = "Python is a language. Python code is readable."
_COOKING_DOC = "Cooking pasta takes time. Good cooking needs salt."


@pytest.fixture
def client(test_settings, object_store, memory_index):
    object_store.put("n1", "python.txt", _PYTHON_DOC)
    object_store.put("u1", "cooking.md", _COOKING_DOC)
    object_store.put("u1", "broken.pdf", b"not a pdf at all")
    object_store.put("u1", "boom.txt", "This one will EXPLODE.")
    object_store.put("u1", "sheet.xlsx", b"\x00")

    service = asyncio.run(
        build_document_service(
            test_settings,
            object_store=object_store,
            embedding_provider=KeywordEmbeddingProvider(fail_on=("EXPLODE",)),
            vector_index=memory_index,
        )
    )
    app = create_app(test_settings, document_service=service)
    with TestClient(app) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["version"] == "0.1.0"
    assert body["components"]["vector_index"]["backend"] == "memory"
    assert body["components"]["object_store"]["namespaces"] == ["n1", "u1"]
    assert body["components"]["chunking"]["chunk_overlap"] == 200


def test_process_all_then_search(client: TestClient) -> None:
    run = client.post("/api/v1/documents/process")

    assert run.status_code == 200
    summary = run.json()
    assert summary["success"] is True
    assert summary["processed"] == 2
    assert summary["failed"] == 2
    assert {f["filename"] for f in summary["failures"]} == {"broken.pdf", "boom.txt"}

    found = client.get("/api/v1/documents/search", params={"q": "python", "top_k": 3})
    assert found.status_code == 200
    results = found.json()["results"]
    assert results[0]["metadata"]["filename"] == "python.txt"
    assert results[0]["similarity"] >= 0.7

    isolated = client.get(
        "/api/v1/documents/search", params={"q": "python", "namespace": "u1"}
    )
    assert isolated.json()["total"] == 0


def test_search_requires_query(client: TestClient) -> None:
    assert client.get("/api/v1/documents/search").status_code == 422


def test_process_single_document(client: TestClient) -> None:
    response = client.post("/api/v1/documents/n1/python.txt/process")

    assert response.status_code == 200
    body = response.json()
    assert body["skipped"] is False
    assert body["result"]["chunks_created"] == 1


def test_process_unsupported_document_is_skipped(client: TestClient) -> None:
    response = client.post("/api/v1/documents/u1/sheet.xlsx/process")

    assert response.status_code == 200
    assert response.json()["skipped"] is True
    assert response.json()["result"] is None


def test_process_missing_document_is_404(client: TestClient) -> None:
    assert client.post("/api/v1/documents/n1/nope.txt/process").status_code == 404


def test_process_corrupt_pdf_is_422(client: TestClient) -> None:
    assert client.post("/api/v1/documents/u1/broken.pdf/process").status_code == 422


def test_embedding_failure_becomes_structured_500(client: TestClient) -> None:
    response = client.post("/api/v1/documents/u1/boom.txt/process")

    assert response.status_code == 500
    assert response.json()["error"] == "EmbeddingProviderError"


def test_status_reports_processing_state(client: TestClient) -> None:
    client.post("/api/v1/documents/n1/python.txt/process")
    client.post("/api/v1/documents/n1/nope.txt/process")

    body = client.get("/api/v1/documents/status").json()

    assert body["total_documents"] == 1
    assert body["recent_documents"][0]["filename"] == "python.txt"
    assert body["errors"][0]["filename"] == "nope.txt"
    assert body["is_processing"] is False


def test_health_reports_completed_runs(client: TestClient) -> None:
    before = client.get("/api/v1/health").json()["components"]["processing"]
    client.post("/api/v1/documents/process")
    after = client.get("/api/v1/health").json()["components"]["processing"]

    assert before["runs_completed"] == 0
    assert before["last_run_at"] is None
    assert after["runs_completed"] == 1
    assert after["last_run_at"] is not None


def test_request_id_echoed(client: TestClient) -> None:
    supplied = client.get("/api/v1/health", headers={"X-Request-ID": "req-42"})
    minted = client.get("/api/v1/health")

    assert supplied.headers["X-Request-ID"] == "req-42"
    assert len(minted.headers["X-Request-ID"]) == 32
