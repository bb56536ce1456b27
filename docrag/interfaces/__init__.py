"""Public interface definitions for docrag's external collaborators.

Business logic talks to the embedding service, the vector index and the
object collection only through these abstract base classes.  Concrete
adapters live under ``docrag/providers`` and are injected at startup by
``docrag.main``, which lets tests pass fakes without patching globals.
"""

from docrag.interfaces.embedding_provider import IEmbeddingProvider
from docrag.interfaces.object_store import IObjectStore
from docrag.interfaces.vector_index import IVectorIndex

__all__ = ["IEmbeddingProvider", "IObjectStore", "IVectorIndex"]
