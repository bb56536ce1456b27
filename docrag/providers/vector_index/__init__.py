"""Vector index implementations.

    QdrantVectorIndex   -- ANN search in a Qdrant collection, filters server-side.
    InMemoryVectorIndex -- exact linear scan over an in-process snapshot.
"""

from docrag.providers.vector_index.memory_index import InMemoryVectorIndex
from docrag.providers.vector_index.qdrant_index import QdrantVectorIndex

__all__ = ["InMemoryVectorIndex", "QdrantVectorIndex"]
