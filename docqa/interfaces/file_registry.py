"""Abstract base class for the uploaded-file metadata store.

The registry is the single source of truth for "this owner already has this
file": implementations must enforce uniqueness of ``(file_hash, owner_id)``
at the storage layer, not only in application code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docqa.models.files import UploadedFile


# Concrete implementation: SQLiteFileRegistry (docqa/providers/registry/)
class IFileRegistry(ABC):
    """Contract for persisting :class:`UploadedFile` rows.

    All operations are async to support network-backed stores.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables / indices if needed.  Must be idempotent."""

    @abstractmethod
    async def insert(
        self,
        file_name: str,
        file_hash: str,
        owner_id: str,
        content_type: str,
        size_bytes: int,
    ) -> UploadedFile:
        """Insert a new row and return it with its assigned id.

        Raises
        ------
        docqa.utils.errors.ConflictError
            If a row for ``(file_hash, owner_id)`` already exists.
        docqa.utils.errors.WriteFailedError
            If the insert fails for any other reason.
        """

    @abstractmethod
    async def get(self, file_hash: str, owner_id: str) -> UploadedFile | None:
        """Return the row for ``(file_hash, owner_id)``, or ``None``."""

    @abstractmethod
    async def count_by_owner(self, owner_id: str) -> int:
        """Return how many files *owner_id* currently holds."""

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> list[UploadedFile]:
        """Return the owner's files, oldest first."""

    @abstractmethod
    async def delete(self, file_hash: str, owner_id: str) -> UploadedFile | None:
        """Delete and return the row for ``(file_hash, owner_id)``.

        Returns ``None`` when no such row exists.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"sqlite_registry"``."""
