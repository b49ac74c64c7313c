"""Filesystem-backed object store.

Stores each raw upload as one file under ``object_store_dir``.  The object
key (``file_hash + owner_id``) is percent-encoded into a safe file name, or
hashed when the encoded name would be too long.  The declared content type
lives in a ``%type`` sidecar next to it; no encoded key can end that way.

``overwrite=False`` writes use ``O_CREAT | O_EXCL`` so the existence check
and the create are a single atomic syscall: a racing second writer for the
same key gets :class:`ConflictError`.
"""

from __future__ import annotations

import asyncio
import hashlib
import os
from pathlib import Path
from urllib.parse import quote

import structlog

from docqa.interfaces.object_store import IObjectStore
from docqa.models.files import StoredObject
from docqa.utils.errors import ConflictError, NotFoundError, WriteFailedError

logger = structlog.get_logger(logger_name=__name__)

_TYPE_SUFFIX = "%type"
_HASHED_PREFIX = "%h"
# Keeps the name plus sidecar suffix under the common 255-byte limit.
_MAX_NAME_LENGTH = 200


class LocalObjectStore(IObjectStore):
    """Object store rooted at a local directory."""

    def __init__(self, root_dir: str | Path = "./data/objects") -> None:
        self._root = Path(root_dir)
        self._root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # IObjectStore implementation
    # ------------------------------------------------------------------

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        overwrite: bool = False,
    ) -> None:
        await asyncio.to_thread(self._put_sync, key, data, content_type, overwrite)
        logger.info("object_stored", key=key, size=len(data), content_type=content_type)

    async def get(self, key: str) -> StoredObject:
        return await asyncio.to_thread(self._get_sync, key)

    async def delete(self, keys: list[str]) -> int:
        removed = await asyncio.to_thread(self._delete_sync, keys)
        logger.info("objects_deleted", requested=len(keys), removed=removed)
        return removed

    async def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    def get_provider_name(self) -> str:
        return "local_objects"

    # -- Sync helpers (executed via asyncio.to_thread) -------------------------

    def _put_sync(self, key: str, data: bytes, content_type: str, overwrite: bool) -> None:
        path = self._path_for(key)
        flags = os.O_WRONLY | os.O_CREAT | (os.O_TRUNC if overwrite else os.O_EXCL)
        try:
            fd = os.open(path, flags, 0o644)
        except FileExistsError as exc:
            raise ConflictError(
                message="The resource already exists",
                provider_name=self.get_provider_name(),
            ) from exc
        except OSError as exc:
            raise WriteFailedError(
                message=f"Failed to store object: {exc.strerror}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            self._type_path_for(key).write_text(content_type, encoding="utf-8")
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise WriteFailedError(
                message=f"Failed to store object: {exc.strerror}",
                provider_name=self.get_provider_name(),
            ) from exc

    def _get_sync(self, key: str) -> StoredObject:
        path = self._path_for(key)
        try:
            data = path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(
                message="File not found in storage",
                provider_name=self.get_provider_name(),
            ) from exc

        type_path = self._type_path_for(key)
        content_type = (
            type_path.read_text(encoding="utf-8").strip()
            if type_path.is_file()
            else "application/octet-stream"
        )
        return StoredObject(key=key, data=data, content_type=content_type)

    def _delete_sync(self, keys: list[str]) -> int:
        removed = 0
        for key in keys:
            path = self._path_for(key)
            if path.is_file():
                path.unlink()
                removed += 1
            self._type_path_for(key).unlink(missing_ok=True)
        return removed

    def _path_for(self, key: str) -> Path:
        return self._root / _encode_key(key)

    def _type_path_for(self, key: str) -> Path:
        return self._root / (_encode_key(key) + _TYPE_SUFFIX)


def _encode_key(key: str) -> str:
    """Map an object key to a file name unique to that key.

    ``quote`` only ever emits ``%`` followed by two hex digits, so names
    containing ``%t`` or ``%h`` can never be produced by it.  Those are the
    sidecar suffix and the prefix for hashed over-long names.
    """
    name = quote(key, safe="")
    if len(name) > _MAX_NAME_LENGTH:
        return _HASHED_PREFIX + hashlib.sha256(key.encode("utf-8")).hexdigest()
    return name
