"""Abstract base class for the namespaced object collection gateway.

The ingestion orchestrator only ever lists a namespace and downloads
objects from it; credentials and transport belong to the implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docrag.models.documents import StoredObject


class IObjectStore(ABC):
    """Contract for reading documents from namespaced collections."""

    @abstractmethod
    async def list_objects(self, namespace: str) -> list[StoredObject]:
        """List every object in *namespace*.

        Raises
        ------
        docrag.utils.errors.ObjectStoreError
            If the namespace cannot be listed.
        """

    @abstractmethod
    async def download(self, namespace: str, name: str) -> bytes:
        """Return the raw bytes of object *name* in *namespace*.

        Raises
        ------
        docrag.utils.errors.ObjectStoreError
            If the object does not exist or cannot be read.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is reachable."""
