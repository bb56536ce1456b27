"""Local-directory object store adapter.

Implements :class:`IObjectStore` on the filesystem: each namespace is a
subdirectory of ``root`` and each regular file in it is an object.  Used
for development, the CLI and tests; cloud buckets plug in behind the same
interface.  Blocking filesystem calls run in a worker thread.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from docrag.interfaces.object_store import IObjectStore
from docrag.models.documents import StoredObject
from docrag.utils.errors import ObjectStoreError

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER_NAME = "local-fs"


class LocalObjectStore(IObjectStore):
    """Object store reading ``<root>/<namespace>/<name>`` files."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    # ------------------------------------------------------------------
    # IObjectStore implementation
    # ------------------------------------------------------------------

    async def list_objects(self, namespace: str) -> list[StoredObject]:
        directory = self._resolve(namespace)
        return await asyncio.to_thread(self._list_sync, directory, namespace)

    async def download(self, namespace: str, name: str) -> bytes:
        path = self._resolve(namespace, name)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as exc:
            raise ObjectStoreError(
                message=f"Object not found: {namespace}/{name}",
                provider_name=_PROVIDER_NAME,
            ) from exc
        except OSError as exc:
            raise ObjectStoreError(
                message=f"Cannot read {namespace}/{name}: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_available(self) -> bool:
        return self._root.is_dir()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve(self, namespace: str, name: str | None = None) -> Path:
        """Map a namespace (and object name) to a path inside the root."""
        root = self._root.resolve()
        path = root / namespace if name is None else root / namespace / name
        path = path.resolve()
        if root not in path.parents:
            raise ObjectStoreError(
                message=f"Path escapes the object store root: {namespace}/{name or ''}",
                provider_name=_PROVIDER_NAME,
            )
        return path

    @staticmethod
    def _list_sync(directory: Path, namespace: str) -> list[StoredObject]:
        if not directory.is_dir():
            raise ObjectStoreError(
                message=f"Namespace not found: {namespace}",
                provider_name=_PROVIDER_NAME,
            )
        objects = [
            StoredObject(name=entry.name, size=entry.stat().st_size)
            for entry in sorted(directory.iterdir())
            if entry.is_file()
        ]
        logger.debug("namespace_listed", namespace=namespace, objects=len(objects))
        return objects
