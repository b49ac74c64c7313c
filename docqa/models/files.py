"""File bookkeeping models.

An :class:`UploadedFile` row, its stored chunks and its raw object form one
logical unit addressed by ``(file_hash, owner_id)``.  The row is created by
the ingestion gate, never mutated, and removed by the delete cascade.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# MIME type of Word 2007+ documents, shared by upload admission and extraction.
DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class UploadedFile(BaseModel):
    """Metadata row for one uploaded document owned by one user."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Registry-assigned identifier.")
    file_name: str = Field(description="Original display name of the upload.")
    file_hash: str = Field(description="Hex-encoded sha256 digest of the raw bytes.")
    owner_id: str = Field(description="Opaque identifier of the owning user.")
    content_type: str = Field(
        default="application/octet-stream",
        description="Declared MIME type, used to pick a text extractor at ingestion.",
    )
    size_bytes: int = Field(default=0, ge=0)
    created_at: datetime


class StoredObject(BaseModel):
    """Raw bytes fetched back from the object store."""

    model_config = ConfigDict(frozen=True)

    key: str
    data: bytes
    content_type: str = "application/octet-stream"


class UploadResult(BaseModel):
    """Outcome of :meth:`IngestionGate.admit`.

    ``duplicate`` is ``True`` when the owner had already uploaded the same
    bytes; ``file_id`` then refers to the pre-existing row.
    """

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    file_id: int
    file_hash: str
    duplicate: bool = False


class DeleteResult(BaseModel):
    """Outcome of the best-effort delete cascade across the three stores."""

    model_config = ConfigDict(frozen=True)

    file: UploadedFile | None = None
    chunks_deleted: int = 0
    object_deleted: bool = False
    failed_steps: list[str] = Field(default_factory=list)
