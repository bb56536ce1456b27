"""Shared pytest fixtures for the docrag test suite."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from docrag.config.settings import Settings
from docrag.interfaces.embedding_provider import IEmbeddingProvider
from docrag.interfaces.object_store import IObjectStore
from docrag.models.documents import StoredObject
from docrag.providers.vector_index.memory_index import InMemoryVectorIndex
from docrag.services.ingestion.chunker import TextChunker
from docrag.services.ingestion.extractor import DocumentExtractor
from docrag.services.ingestion.ingestion_service import IngestionService
from docrag.services.ingestion.processing_state import ProcessingStateTracker
from docrag.services.retrieval_service import RetrievalService
from docrag.utils.errors import EmbeddingProviderError, ObjectStoreError

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

TOPICS = ("python", "cooking", "astronomy", "finance")
_WORD_RE = re.compile(r"[a-z]+")


class KeywordEmbeddingProvider(IEmbeddingProvider):
    """Deterministic embedder: one dimension per topic keyword.

    A text's vector counts each topic keyword it contains.  Text with no
    topic keyword maps to the extra "other" dimension, so it is orthogonal
    (cosine 0) to every topical text.  Any text containing a string from
    ``fail_on`` raises an HTTP 500 ``EmbeddingProviderError``.
    """

    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.fail_on = fail_on
        self.calls: list[list[str]] = []

    @staticmethod
    def vector_for(text: str) -> list[float]:
        words = _WORD_RE.findall(text.lower())
        counts = [float(words.count(topic)) for topic in TOPICS]
        other = 0.0 if any(counts) else 1.0
        return counts + [other]

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        for text in texts:
            if any(marker in text for marker in self.fail_on):
                raise EmbeddingProviderError(
                    message="Embedding API error: 500 - upstream exploded",
                    provider_name="keyword",
                    status_code=500,
                    body="upstream exploded",
                )
        return [self.vector_for(text) for text in texts]

    async def embed_single(self, text: str) -> list[float]:
        return (await self.embed([text]))[0]

    def get_dimension(self) -> int:
        return len(TOPICS) + 1

    def get_provider_name(self) -> str:
        return "keyword"

    def is_available(self) -> bool:
        return True


class InMemoryObjectStore(IObjectStore):
    """Object store over a ``{namespace: {name: bytes}}`` dict."""

    def __init__(self, objects: dict[str, dict[str, bytes]] | None = None) -> None:
        self.objects: dict[str, dict[str, bytes]] = objects or {}

    def put(self, namespace: str, name: str, content: bytes | str) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.objects.setdefault(namespace, {})[name] = content

    async def list_objects(self, namespace: str) -> list[StoredObject]:
        if namespace not in self.objects:
            raise ObjectStoreError(message=f"Namespace not found: {namespace}", provider_name="memory")
        return [
            StoredObject(name=name, size=len(data))
            for name, data in sorted(self.objects[namespace].items())
        ]

    async def download(self, namespace: str, name: str) -> bytes:
        try:
            return self.objects[namespace][name]
        except KeyError as exc:
            raise ObjectStoreError(
                message=f"Object not found: {namespace}/{name}", provider_name="memory"
            ) from exc

    def get_provider_name(self) -> str:
        return "memory"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Sample text
# ---------------------------------------------------------------------------


def short_sentences_text(count: int = 55) -> str:
    """``count`` sentences of 45 characters each, joined by single spaces."""
    sentence = ("word " * 9).strip() + "."
    return " ".join([sentence] * count)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    return Settings(
        _env_file=None,
        embedding_api_key="test-key",
        embedding_base_url="https://embeddings.test/v1",
        embedding_dimensions=len(TOPICS) + 1,
        embedding_retry_backoff_seconds=0.0,
        document_namespaces=["n1", "u1"],
        vector_db_type="memory",
    )


@pytest.fixture
def embedder() -> KeywordEmbeddingProvider:
    return KeywordEmbeddingProvider()


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore({"n1": {}, "u1": {}})


@pytest.fixture
def memory_index() -> InMemoryVectorIndex:
    return InMemoryVectorIndex(dimension=len(TOPICS) + 1)


@pytest.fixture
def state() -> ProcessingStateTracker:
    return ProcessingStateTracker(recent_limit=5)


@pytest.fixture
def make_ingestion(object_store, embedder, memory_index, state):
    """Factory building an IngestionService over the shared fakes."""

    def _make(
        namespaces: tuple[str, ...] = ("n1", "u1"),
        replace_existing: bool = True,
        chunk_size: int = 1000,
        embedding_provider: IEmbeddingProvider | None = None,
    ) -> IngestionService:
        return IngestionService(
            object_store=object_store,
            extractor=DocumentExtractor(),
            chunker=TextChunker(chunk_size=chunk_size, chunk_overlap=min(200, chunk_size - 1)),
            embedding_provider=embedding_provider or embedder,
            vector_index=memory_index,
            state=state,
            namespaces=namespaces,
            replace_existing=replace_existing,
        )

    return _make


@pytest.fixture
def retrieval(embedder, memory_index) -> RetrievalService:
    return RetrievalService(embedding_provider=embedder, vector_index=memory_index, min_similarity=0.7)
