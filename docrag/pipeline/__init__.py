"""Background processing components for docrag."""

from docrag.pipeline.scheduler import DocumentProcessingScheduler

__all__ = ["DocumentProcessingScheduler"]
