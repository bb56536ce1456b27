"""HTTP ops API: routes, schemas and middleware."""

from docrag.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from docrag.api.routes import router
from docrag.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ProcessDocumentResponse,
    SearchResponse,
    SearchResultItem,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "HealthResponse",
    "ProcessDocumentResponse",
    "RequestLoggingMiddleware",
    "SearchResponse",
    "SearchResultItem",
    "configure_cors",
    "router",
]
