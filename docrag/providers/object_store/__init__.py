"""Object store implementations.

    LocalObjectStore -- namespaces are subdirectories of a root directory.
"""

from docrag.providers.object_store.local_object_store import LocalObjectStore

__all__ = ["LocalObjectStore"]
