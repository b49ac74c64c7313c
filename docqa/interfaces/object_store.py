"""Abstract base class for raw-object storage providers.

Defines the contract for storing the uploaded bytes of a document under a
composite key (``file_hash + owner_id``).  Implementations may wrap a local
directory, S3, GCS or a hosted storage bucket.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docqa.models.files import StoredObject


# Concrete implementation: LocalObjectStore (docqa/providers/storage/)
class IObjectStore(ABC):
    """Contract for key/value byte storage used by upload and ingestion.

    Objects are written once at upload, read once during ingestion and
    deleted together with their :class:`~docqa.models.files.UploadedFile`.
    """

    @abstractmethod
    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        overwrite: bool = False,
    ) -> None:
        """Store *data* under *key*.

        Parameters
        ----------
        key:
            Object key.  Callers build it with
            :func:`docqa.services.hashing.object_key`.
        data:
            Raw bytes to persist.
        content_type:
            MIME type recorded alongside the bytes.
        overwrite:
            When ``False`` the write must fail if *key* already exists.
            Implementations must make the check-and-create atomic so that a
            racing second writer is rejected.

        Raises
        ------
        docqa.utils.errors.ConflictError
            If *overwrite* is ``False`` and the key already exists.
        docqa.utils.errors.WriteFailedError
            If the backend write fails for any other reason.
        """

    @abstractmethod
    async def get(self, key: str) -> StoredObject:
        """Fetch the object stored under *key*.

        Raises
        ------
        docqa.utils.errors.NotFoundError
            If no object exists for *key*.
        """

    @abstractmethod
    async def delete(self, keys: list[str]) -> int:
        """Delete every object in *keys*; missing keys are ignored.

        Returns
        -------
        int
            The number of objects actually removed.
        """

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if an object is stored under *key*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"local_objects"``."""
