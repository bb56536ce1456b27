"""Source document models.

A document lives in a namespace of the object collection and is identified
by ``(namespace, name)``.  Documents are not versioned: every discovery of
the same name re-ingests it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class StoredObject(BaseModel):
    """One entry of a namespace listing returned by the object store."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Object name within its namespace, e.g. 'handbook.pdf'.")
    size: int = Field(default=0, ge=0, description="Size of the object in bytes.")


class Document(BaseModel):
    """A downloaded source document ready for extraction."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(description="Logical collection the document belongs to.")
    name: str = Field(description="Object name within the namespace.")
    content: bytes = Field(description="Raw document bytes.")
    media_type: str = Field(description="File type label derived from the extension, e.g. 'pdf'.")


class ExtractedDocument(BaseModel):
    """Plain text and basic metadata pulled out of a document's bytes."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="Extracted plain text; layout is not preserved.")
    page_count: int = Field(default=1, ge=0, description="Number of pages (1 for text files).")
    title: str = Field(default="", description="Document title, falling back to the filename.")
