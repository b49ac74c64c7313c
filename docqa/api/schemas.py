"""Pydantic request/response schemas for the docqa API.

Defines the public contract for every REST endpoint: upload, ingest,
query, file listing, deletion and health.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# FastAPI validates incoming JSON against the *Request* models and
# serialises handler return values through the *Response* models.
# Validation failures are mapped to 400 ``ErrorResponse`` bodies by the
# exception handler installed in ``docqa.api.middleware``.
#
# Upload takes multipart form data rather than JSON, so it has no request
# model; its fields are declared directly on the route.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from docqa.models.files import UploadedFile
from docqa.models.rag import RetrievedChunk


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


# ---------------------------------------------------------------------------
# Upload / ingest
# ---------------------------------------------------------------------------


class UploadResponse(BaseModel):
    """Result of admitting an upload; ``duplicate`` marks a dedup no-op."""

    status: str = "ok"
    file_id: int
    file_hash: str
    duplicate: bool = False


class IngestRequest(BaseModel):
    """Body of ``POST /files/{file_hash}/ingest``."""

    owner_id: str = Field(..., min_length=1)


class IngestResponse(BaseModel):
    status: str = "ok"
    chunks_processed: int
    file_hash: str
    owner_id: str
    existing: bool = False


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


class QueryRequest(BaseModel):
    """A question scoped to one owner's documents."""

    owner_id: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1, max_length=4000)


class ContextChunkMetadata(BaseModel):
    file_hash: str
    owner_id: str
    sequence_id: int


class ContextChunk(BaseModel):
    """One retrieved chunk as returned to the client."""

    content: str
    metadata: ContextChunkMetadata
    similarity_score: float

    @classmethod
    def from_retrieved(cls, retrieved: RetrievedChunk) -> ContextChunk:
        meta = retrieved.chunk.metadata
        return cls(
            content=retrieved.chunk.content,
            metadata=ContextChunkMetadata(
                file_hash=meta.file_hash,
                owner_id=meta.owner_id,
                sequence_id=meta.sequence_id,
            ),
            similarity_score=retrieved.similarity_score,
        )


class QueryResponse(BaseModel):
    """The answer plus the exact ordered context it was grounded on."""

    answer: str
    context: list[ContextChunk] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# File management
# ---------------------------------------------------------------------------


class FileListResponse(BaseModel):
    files: list[UploadedFile] = Field(default_factory=list)


class DeleteFileResponse(BaseModel):
    """Outcome of the three-step delete; ``failed_steps`` names any step to retry."""

    file: UploadedFile | None = None
    chunks_deleted: int = 0
    object_deleted: bool = False
    failed_steps: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]
