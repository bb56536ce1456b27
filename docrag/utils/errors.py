"""Custom exception hierarchy for docrag.

All application exceptions inherit from :class:`DocRAGError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "openrouter", "qdrant", "local-fs") caused the failure.

The hierarchy is organized by pipeline stage:

    DocRAGError  (base -- catch-all for any docrag error)
    +-- ConfigurationError        (startup / missing config)
    +-- ObjectStoreError          (listing or downloading a document)
    +-- ExtractionError           (unsupported or corrupt document)
    +-- EmbeddingProviderError    (non-success HTTP status from the provider)
    |   +-- EmbeddingFormatError  (malformed / unexpected response shape)
    +-- VectorIndexError          (upsert / search / delete failure)
    |   +-- DimensionMismatchError
    |   +-- IndexUnavailableError (ANN backend unreachable at startup)
    +-- SearchError               (query path failure)

Per-document errors abort only that document inside a bulk ingestion run;
the retrieval path converts every error into an empty result list.
"""

from __future__ import annotations


class DocRAGError(Exception):
    """Base exception for all docrag errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which collaborator triggered the error.
    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[openrouter] Request timed out``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class ConfigurationError(DocRAGError):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class ObjectStoreError(DocRAGError):
    """Raised when a namespace cannot be listed or a document downloaded."""

    def __init__(
        self,
        message: str = "Object store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ExtractionError(DocRAGError):
    """Raised when a document's bytes cannot be turned into text."""

    def __init__(
        self,
        message: str = "Document text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Embedding provider errors
# ---------------------------------------------------------------------------

class EmbeddingProviderError(DocRAGError):
    """Raised when the embedding provider answers with a non-success status.

    The HTTP ``status_code`` and raw response ``body`` are kept on the
    exception so the failure report can be diagnosed without re-running
    the request.
    """

    def __init__(
        self,
        message: str = "Embedding provider request failed",
        provider_name: str | None = None,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._status_code = status_code
        self._body = body

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def body(self) -> str:
        return self._body


class EmbeddingFormatError(EmbeddingProviderError):
    """Raised when the provider's response matches neither accepted shape."""

    def __init__(
        self,
        message: str = "Unexpected embedding response format",
        provider_name: str | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, body=body)


# ---------------------------------------------------------------------------
# Vector index errors
# ---------------------------------------------------------------------------

class VectorIndexError(DocRAGError):
    """Raised when a vector index operation fails."""

    def __init__(
        self,
        message: str = "Vector index operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DimensionMismatchError(VectorIndexError):
    """Raised when a vector's length differs from the index dimensionality."""

    def __init__(
        self,
        expected: int,
        actual: int,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(
            message=f"Embedding dimension mismatch: expected {expected}, got {actual}",
            provider_name=provider_name,
        )
        self.expected = expected
        self.actual = actual


class IndexUnavailableError(VectorIndexError):
    """Raised when the ANN backend cannot be reached or initialized.

    Startup code catches this to fall back to the in-process index.
    """

    def __init__(
        self,
        message: str = "Vector index backend is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Retrieval errors
# ---------------------------------------------------------------------------

class SearchError(DocRAGError):
    """Raised when the query path fails; the retrieval service converts it to ``[]``."""

    def __init__(
        self,
        message: str = "Document search failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
