"""Retrieval data models: chunks, stored vector records and search results.

Flow of data through these models:

    1. INGESTION: the chunker turns extracted text into ``DocumentChunk``s.
    2. EMBEDDING: each chunk gets one vector from the embedding provider.
    3. STORAGE: chunk + vector become a ``VectorRecord`` in the active index.
       The record payload is ``{"text": ..., "metadata": {...}}``; the
       ``metadata.namespace`` key is what namespace-filtered search matches.
    4. RETRIEVAL: a query returns ``SearchResult``s ranked by similarity.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Fixed namespace for deterministic record ids, so the same chunk of the same
# document content always maps to the same point id.
_RECORD_ID_NAMESPACE = uuid.UUID("6f1c3c1e-2f5a-4b7e-9a53-0d6a3c2b9e41")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# DocumentChunk -- the unit of embedding and retrieval.
# ---------------------------------------------------------------------------
class DocumentChunk(BaseModel):
    """A bounded, sentence-aligned span of text from one document.

    Chunks are created by :class:`~docrag.services.ingestion.chunker.TextChunker`
    and never shared between documents.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="The chunk's textual content.")
    namespace: str = Field(description="Namespace of the parent document.")
    filename: str = Field(description="Name of the parent document.")
    chunk_index: int = Field(ge=0, description="Zero-based position within the document.")
    media_type: str = Field(default="", description="File type of the parent document.")
    page_count: int = Field(default=1, ge=0, description="Page count of the parent document.")
    title: str = Field(default="", description="Title of the parent document.")
    content_hash: str = Field(
        default="",
        description="SHA-256 of the parent document's bytes; identifies the ingested version.",
    )
    processed_at: datetime = Field(
        default_factory=_utcnow,
        description="When the parent document was ingested (UTC).",
    )

    def record_id(self, nonce: str = "") -> str:
        """UUID for this chunk's vector record.

        Deterministic for a given document version.  A non-empty *nonce*
        (one per ingestion) makes every ingestion write distinct records.
        """
        key = f"{self.namespace}/{self.filename}/{self.content_hash}/{self.chunk_index}"
        if nonce:
            key = f"{key}/{nonce}"
        return str(uuid.uuid5(_RECORD_ID_NAMESPACE, key))

    def metadata(self) -> dict[str, Any]:
        """Flat, JSON-safe metadata stored alongside the vector."""
        return {
            "namespace": self.namespace,
            "filename": self.filename,
            "chunk_index": self.chunk_index,
            "media_type": self.media_type,
            "pages": self.page_count,
            "title": self.title,
            "content_hash": self.content_hash,
            "processed_at": self.processed_at.isoformat(),
        }


# ---------------------------------------------------------------------------
# VectorRecord -- what a vector index actually stores.
# ---------------------------------------------------------------------------
class VectorRecord(BaseModel):
    """A chunk's vector plus the payload returned to searchers."""

    model_config = ConfigDict(frozen=True)

    record_id: str = Field(description="Unique record identifier (UUID string).")
    vector: list[float] = Field(description="Embedding vector of the configured dimensionality.")
    text: str = Field(description="Chunk text returned with search results.")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Chunk metadata.")

    @classmethod
    def from_chunk(
        cls, chunk: DocumentChunk, vector: list[float], nonce: str = ""
    ) -> VectorRecord:
        return cls(
            record_id=chunk.record_id(nonce),
            vector=vector,
            text=chunk.text,
            metadata=chunk.metadata(),
        )

    @property
    def namespace(self) -> str | None:
        return self.metadata.get("namespace")

    def payload(self) -> dict[str, Any]:
        """Payload layout shared by both index backends."""
        return {"text": self.text, "metadata": dict(self.metadata)}


# ---------------------------------------------------------------------------
# SearchResult -- a ranked retrieval hit, never persisted.
# ---------------------------------------------------------------------------
class SearchResult(BaseModel):
    """A chunk returned from a similarity query with its cosine similarity."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="Chunk text.")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Chunk metadata.")
    similarity: float = Field(description="Cosine similarity between query and chunk.")
