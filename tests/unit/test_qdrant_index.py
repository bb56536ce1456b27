"""Unit tests for QdrantVectorIndex with a mocked AsyncQdrantClient."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from qdrant_client.http import models as rest

from docrag.models.rag import VectorRecord
from docrag.providers.vector_index.qdrant_index import QdrantVectorIndex
from docrag.utils.errors import (
    DimensionMismatchError,
    IndexUnavailableError,
    VectorIndexError,
)


def _mock_client(existing: tuple[str, ...] = ()) -> MagicMock:
    client = MagicMock()
    client.get_collections = AsyncMock(
        return_value=SimpleNamespace(collections=[SimpleNamespace(name=n) for n in existing])
    )
    client.create_collection = AsyncMock()
    client.upsert = AsyncMock()
    client.query_points = AsyncMock(return_value=SimpleNamespace(points=[]))
    client.count = AsyncMock(return_value=SimpleNamespace(count=0))
    client.delete = AsyncMock()
    client.close = AsyncMock()
    return client


def _index(client: MagicMock) -> QdrantVectorIndex:
    return QdrantVectorIndex(
        url="http://qdrant.test:6333", collection_name="docs", dimension=3, client=client
    )


class TestInitialize:
    @pytest.mark.asyncio
    async def test_creates_missing_collection(self) -> None:
        client = _mock_client()
        await _index(client).initialize()

        client.create_collection.assert_awaited_once()
        kwargs = client.create_collection.await_args.kwargs
        assert kwargs["collection_name"] == "docs"
        assert kwargs["vectors_config"].size == 3
        assert kwargs["vectors_config"].distance == rest.Distance.COSINE

    @pytest.mark.asyncio
    async def test_existing_collection_left_alone(self) -> None:
        client = _mock_client(existing=("docs",))
        await _index(client).initialize()
        client.create_collection.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_first_operation_initializes_once(self) -> None:
        client = _mock_client()
        index = _index(client)
        record = VectorRecord(record_id="x", vector=[0.1, 0.2, 0.3], text="t", metadata={})

        await index.upsert([record])
        await index.search([1.0, 0.0, 0.0], limit=1, score_threshold=0.0)
        await index.count()

        client.get_collections.assert_awaited_once()
        client.create_collection.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_explicit_initialize_not_repeated(self) -> None:
        client = _mock_client(existing=("docs",))
        index = _index(client)

        await index.initialize()
        await index.count()

        client.get_collections.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreachable_backend_raises_unavailable(self) -> None:
        client = _mock_client()
        client.get_collections.side_effect = ConnectionError("refused")

        with pytest.raises(IndexUnavailableError):
            await _index(client).initialize()


class TestOperations:
    @pytest.mark.asyncio
    async def test_upsert_sends_points_with_payload(self) -> None:
        client = _mock_client()
        record = VectorRecord(
            record_id="6f1c2c1e-2f7b-5e8a-9d0c-1a2b3c4d5e6f",
            vector=[0.1, 0.2, 0.3],
            text="hello",
            metadata={"namespace": "n1", "filename": "a.txt"},
        )

        written = await _index(client).upsert([record])

        assert written == 1
        points = client.upsert.await_args.kwargs["points"]
        assert points[0].id == record.record_id
        assert points[0].payload == {"text": "hello", "metadata": record.metadata}

    @pytest.mark.asyncio
    async def test_upsert_rejects_wrong_dimension(self) -> None:
        client = _mock_client()
        record = VectorRecord(record_id="x", vector=[0.1], text="t", metadata={})
        with pytest.raises(DimensionMismatchError):
            await _index(client).upsert([record])
        client.upsert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_search_pushes_namespace_filter_and_threshold(self) -> None:
        client = _mock_client()
        client.query_points.return_value = SimpleNamespace(
            points=[
                SimpleNamespace(
                    score=0.91,
                    payload={"text": "chunk", "metadata": {"namespace": "u1"}},
                )
            ]
        )

        results = await _index(client).search([1.0, 0.0, 0.0], limit=4, score_threshold=0.7, namespace="u1")

        kwargs = client.query_points.await_args.kwargs
        assert kwargs["limit"] == 4
        assert kwargs["score_threshold"] == 0.7
        condition = kwargs["query_filter"].must[0]
        assert condition.key == "metadata.namespace"
        assert condition.match.value == "u1"
        assert results[0].text == "chunk"
        assert results[0].similarity == pytest.approx(0.91)

    @pytest.mark.asyncio
    async def test_search_without_namespace_has_no_filter(self) -> None:
        client = _mock_client()
        await _index(client).search([1.0, 0.0, 0.0], limit=4, score_threshold=0.7)
        assert client.query_points.await_args.kwargs["query_filter"] is None

    @pytest.mark.asyncio
    async def test_search_with_empty_namespace_still_filters(self) -> None:
        client = _mock_client()
        await _index(client).search([1.0, 0.0, 0.0], limit=4, score_threshold=0.7, namespace="")

        query_filter = client.query_points.await_args.kwargs["query_filter"]
        assert query_filter is not None
        assert query_filter.must[0].match.value == ""

    @pytest.mark.asyncio
    async def test_search_failure_wrapped(self) -> None:
        client = _mock_client()
        client.query_points.side_effect = RuntimeError("boom")
        with pytest.raises(VectorIndexError):
            await _index(client).search([1.0, 0.0, 0.0], limit=4, score_threshold=0.7)

    @pytest.mark.asyncio
    async def test_delete_document_counts_then_deletes(self) -> None:
        client = _mock_client()
        client.count.return_value = SimpleNamespace(count=3)

        removed = await _index(client).delete_document("n1", "a.txt")

        assert removed == 3
        client.delete.assert_awaited_once()
        doc_filter = client.delete.await_args.kwargs["points_selector"].filter
        assert [c.key for c in doc_filter.must] == ["metadata.namespace", "metadata.filename"]
        assert doc_filter.must_not is None

    @pytest.mark.asyncio
    async def test_delete_document_excludes_kept_ids(self) -> None:
        client = _mock_client()
        client.count.return_value = SimpleNamespace(count=2)
        kept = ["6f1c2c1e-2f7b-5e8a-9d0c-1a2b3c4d5e6f"]

        await _index(client).delete_document("n1", "a.txt", keep_ids=kept)

        count_filter = client.count.await_args.kwargs["count_filter"]
        delete_filter = client.delete.await_args.kwargs["points_selector"].filter
        for doc_filter in (count_filter, delete_filter):
            assert doc_filter.must_not[0].has_id == kept

    @pytest.mark.asyncio
    async def test_delete_document_skips_when_nothing_stored(self) -> None:
        client = _mock_client()
        assert await _index(client).delete_document("n1", "a.txt") == 0
        client.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_count_and_close(self) -> None:
        client = _mock_client()
        client.count.return_value = SimpleNamespace(count=7)
        index = _index(client)

        assert await index.count() == 7
        await index.aclose()
        client.close.assert_awaited_once()
        assert index.get_backend_name() == "qdrant"
