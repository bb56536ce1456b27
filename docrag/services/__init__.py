"""Application services: ingestion, retrieval and the document facade."""
