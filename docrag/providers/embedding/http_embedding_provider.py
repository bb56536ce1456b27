"""OpenAI-compatible embedding provider adapter over plain HTTP.

Implements :class:`IEmbeddingProvider` against any ``/embeddings`` endpoint
that follows the OpenAI request shape (OpenRouter by default).  Requests
are made with ``httpx.AsyncClient`` rather than the ``openai`` SDK because
some gateways answer with a bare list of vectors instead of the
``{"data": [...]}`` envelope; both shapes are validated with Pydantic and
normalized into one ordered list of vectors.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from docrag.config.settings import Settings
from docrag.interfaces.embedding_provider import IEmbeddingProvider
from docrag.utils.errors import (
    ConfigurationError,
    EmbeddingFormatError,
    EmbeddingProviderError,
)

logger = structlog.get_logger(logger_name=__name__)

# Longest response body kept on an error, enough for a provider's JSON error.
_MAX_ERROR_BODY = 2000


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class _EmbeddingItem(BaseModel):
    embedding: list[float]
    index: int | None = None


class _EmbeddingEnvelope(BaseModel):
    data: list[_EmbeddingItem]


_BARE_VECTORS = TypeAdapter(list[list[float]])


def normalize_embedding_response(payload: Any) -> list[list[float]]:
    """Turn either accepted response shape into an ordered list of vectors.

    Accepted shapes are ``{"data": [{"embedding": [...], "index": 0}, ...]}``
    (entries re-ordered by ``index`` when every entry carries one) and a bare
    ``[[...], ...]``.

    Raises
    ------
    EmbeddingFormatError
        For any other shape.
    """
    try:
        if isinstance(payload, dict):
            envelope = _EmbeddingEnvelope.model_validate(payload)
            items = envelope.data
            if items and all(item.index is not None for item in items):
                items = sorted(items, key=lambda item: item.index)
            return [item.embedding for item in items]
        if isinstance(payload, list):
            return _BARE_VECTORS.validate_python(payload)
    except ValidationError as exc:
        raise EmbeddingFormatError(body=str(exc)[:_MAX_ERROR_BODY]) from exc
    raise EmbeddingFormatError(body=repr(payload)[:_MAX_ERROR_BODY])


def _is_transient(exc: BaseException) -> bool:
    """Transport failures, rate limits and server errors are worth retrying."""
    if isinstance(exc, EmbeddingFormatError):
        return False
    if isinstance(exc, EmbeddingProviderError):
        status = exc.status_code
        return status is None or status == 429 or status >= 500
    return False


class HTTPEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible HTTP endpoint.

    Input is split into batches of ``embedding_batch_size``; each batch is
    one POST of ``{"model": ..., "input": ...}`` where ``input`` is a bare
    string for a single-element batch and a list otherwise.  Transient
    failures are retried with exponential backoff via tenacity.
    """

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = settings.embedding_api_key
        self._base_url = settings.embedding_base_url.rstrip("/")
        self._model = settings.embedding_model
        self._dimension = settings.embedding_dimensions
        self._batch_size = settings.embedding_batch_size
        self._max_retries = max(0, settings.embedding_max_retries)
        self._retry_backoff = settings.embedding_retry_backoff_seconds
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.embedding_timeout_seconds)
        )
        self._owns_client = client is None
        self._provider_label = (
            "openrouter_embedding" if "openrouter" in self._base_url else "http_embedding"
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for *texts*, one provider call per batch."""
        if not texts:
            return []
        if not self._api_key:
            raise ConfigurationError(
                message="Embedding API key is not configured",
                provider_name=self.get_provider_name(),
            )

        all_embeddings: list[list[float]] = []
        for start in range(0, len(texts), self._batch_size):
            batch = texts[start : start + self._batch_size]
            vectors = await self._embed_batch_with_retry(batch)
            if len(vectors) != len(batch):
                raise EmbeddingFormatError(
                    message=(
                        f"Embedding response carried {len(vectors)} vectors "
                        f"for a batch of {len(batch)} texts"
                    ),
                    provider_name=self.get_provider_name(),
                )
            all_embeddings.extend(vectors)
            logger.info(
                "embedding_batch",
                model=self._model,
                provider=self._provider_label,
                batch_start=start,
                batch_size=len(batch),
            )
        return all_embeddings

    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _embed_batch_with_retry(self, batch: list[str]) -> list[list[float]]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_exponential(multiplier=self._retry_backoff, max=10),
            retry=retry_if_exception(_is_transient),
            before_sleep=self._log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._post_batch(batch)
        raise EmbeddingProviderError(provider_name=self.get_provider_name())

    async def _post_batch(self, batch: list[str]) -> list[list[float]]:
        body = {
            "model": self._model,
            "input": batch[0] if len(batch) == 1 else batch,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = await self._client.post(
                f"{self._base_url}/embeddings", json=body, headers=headers
            )
        except httpx.HTTPError as exc:
            raise EmbeddingProviderError(
                message=f"Embedding request failed: {exc.__class__.__name__}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code >= 400:
            text = response.text[:_MAX_ERROR_BODY]
            raise EmbeddingProviderError(
                message=f"Embedding API error: {response.status_code} - {text}",
                provider_name=self.get_provider_name(),
                status_code=response.status_code,
                body=text,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise EmbeddingFormatError(
                provider_name=self.get_provider_name(),
                body=response.text[:_MAX_ERROR_BODY],
            ) from exc

        try:
            return normalize_embedding_response(payload)
        except EmbeddingFormatError as exc:
            raise EmbeddingFormatError(
                provider_name=self.get_provider_name(), body=exc.body
            ) from exc

    def _log_retry(self, retry_state: Any) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "embedding_batch_retry",
            provider=self._provider_label,
            attempt=retry_state.attempt_number,
            error=str(exc),
        )
