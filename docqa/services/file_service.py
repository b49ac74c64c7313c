"""Listing and deleting an owner's uploaded files.

Deletion touches three stores with no shared transaction: the registry
row, the owner's chunks for the file, and the raw object.  Every step is
attempted even when an earlier one fails; failures are logged and named in
:attr:`DeleteResult.failed_steps` so the caller can retry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from docqa.models.files import DeleteResult, UploadedFile
from docqa.services.hashing import object_key
from docqa.utils.errors import BadRequestError

if TYPE_CHECKING:
    from docqa.interfaces.file_registry import IFileRegistry
    from docqa.interfaces.object_store import IObjectStore
    from docqa.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)


class FileService:
    """Owner-scoped file listing and three-step deletion."""

    def __init__(
        self,
        file_registry: IFileRegistry,
        vector_store: IVectorStoreProvider,
        object_store: IObjectStore,
    ) -> None:
        self._file_registry = file_registry
        self._vector_store = vector_store
        self._object_store = object_store

    async def list_files(self, owner_id: str | None) -> list[UploadedFile]:
        if not owner_id or not owner_id.strip():
            raise BadRequestError(message="owner_id is required")
        return await self._file_registry.list_by_owner(owner_id)

    async def delete_file(self, file_hash: str | None, owner_id: str | None) -> DeleteResult:
        """Remove one file's row, chunks and raw object for *owner_id*.

        Another owner's copy of the same bytes is left untouched.  Deleting
        a file that does not exist returns ``file=None``.
        """
        if not file_hash or not owner_id or not owner_id.strip():
            raise BadRequestError(message="file_hash and owner_id are required")

        failed: list[str] = []

        record: UploadedFile | None = None
        try:
            record = await self._file_registry.delete(file_hash, owner_id)
        except Exception as exc:
            failed.append("registry")
            logger.error("delete_registry_failed", file_hash=file_hash, owner_id=owner_id, error=str(exc))

        chunks_deleted = 0
        try:
            chunks_deleted = await self._vector_store.delete_by_file(file_hash, owner_id)
        except Exception as exc:
            failed.append("chunks")
            logger.error("delete_chunks_failed", file_hash=file_hash, owner_id=owner_id, error=str(exc))

        object_deleted = False
        try:
            object_deleted = await self._object_store.delete([object_key(file_hash, owner_id)]) > 0
        except Exception as exc:
            failed.append("object")
            logger.error("delete_object_failed", file_hash=file_hash, owner_id=owner_id, error=str(exc))

        logger.info(
            "file_deleted",
            file_hash=file_hash,
            owner_id=owner_id,
            found=record is not None,
            chunks_deleted=chunks_deleted,
            object_deleted=object_deleted,
            failed_steps=failed,
        )
        return DeleteResult(
            file=record,
            chunks_deleted=chunks_deleted,
            object_deleted=object_deleted,
            failed_steps=failed,
        )
