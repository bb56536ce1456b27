"""Document ingestion pipeline.

Pipeline stages overview:

1. **Download** (via IObjectStore) -- raw bytes of one object in a namespace.

2. **Extract** (extractor.py / DocumentExtractor) -- PDF text layer or
   UTF-8 text/markdown; unsupported extensions are skipped.

3. **Chunk** (chunker.py / TextChunker) -- sentence-aligned chunks bounded
   by a character budget.

4. **Embed** (via IEmbeddingProvider) -- one vector per chunk, batched.

5. **Store** (via IVectorIndex) -- the document's previous records are
   replaced by the new set.

The IngestionService orchestrates all five stages and records outcomes in
the ProcessingStateTracker (processing_state.py).
"""

from docrag.services.ingestion.chunker import TextChunker
from docrag.services.ingestion.extractor import DocumentExtractor, is_supported, media_type_for
from docrag.services.ingestion.ingestion_service import IngestionService
from docrag.services.ingestion.processing_state import ProcessingStateTracker

__all__ = [
    "DocumentExtractor",
    "IngestionService",
    "ProcessingStateTracker",
    "TextChunker",
    "is_supported",
    "media_type_for",
]
