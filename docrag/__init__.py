"""docrag -- document ingestion and namespace-scoped semantic retrieval."""

__version__ = "0.1.0"
