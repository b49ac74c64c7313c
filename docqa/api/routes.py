"""FastAPI API routes for docqa.

Provides REST endpoints for upload, ingestion, grounded question answering,
file listing, file deletion and health.  Service dependencies are resolved
from ``app.state`` via FastAPI's ``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                              Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/files                         POST    Upload a document (multipart)
# /api/v1/files                         GET     List an owner's files
# /api/v1/files/{file_hash}/ingest      POST    Chunk + embed an uploaded file
# /api/v1/files/{file_hash}             DELETE  Delete row, chunks and object
# /api/v1/query                         POST    Ask a question over own files
# /api/v1/health                        GET     Health check + provider status
#
# Every route except /health is scoped by an owner id supplied by the
# caller.  Handlers stay thin: validation and policy live in the services,
# which raise DocQAError subclasses that ErrorHandlingMiddleware turns
# into status-coded JSON.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from docqa import __version__
from docqa.api.schemas import (
    ContextChunk,
    DeleteFileResponse,
    FileListResponse,
    HealthResponse,
    IngestRequest,
    IngestResponse,
    QueryRequest,
    QueryResponse,
    UploadResponse,
)
from docqa.services.answer_composer import AnswerComposer
from docqa.services.file_service import FileService
from docqa.services.ingestion.ingestion_service import IngestionService
from docqa.services.ingestion_gate import IngestionGate
from docqa.utils.errors import BadRequestError, PayloadTooLargeError
from docqa.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

# Uploads are read in 64 KB increments so an oversized body is rejected
# after buffering at most limit + 64 KB.
_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Dependency injection helpers: resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_ingestion_gate(request: Request) -> IngestionGate:
    """Return the upload gate from application state."""
    return request.app.state.ingestion_gate


def _get_ingestion_service(request: Request) -> IngestionService:
    """Return the ingestion service from application state."""
    return request.app.state.ingestion_service


def _get_answer_composer(request: Request) -> AnswerComposer:
    """Return the answer composer from application state."""
    return request.app.state.answer_composer


def _get_file_service(request: Request) -> FileService:
    """Return the file service from application state."""
    return request.app.state.file_service


GateDep = Annotated[IngestionGate, Depends(_get_ingestion_gate)]
IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
ComposerDep = Annotated[AnswerComposer, Depends(_get_answer_composer)]
FileServiceDep = Annotated[FileService, Depends(_get_file_service)]


async def _read_capped(file: UploadFile, limit: int) -> bytes:
    """Read *file* fully, raising as soon as more than *limit* bytes arrive."""
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > limit:
            raise PayloadTooLargeError(
                message=f"File size exceeds the {limit / (1024 * 1024):g} MB limit",
            )
        chunks.append(chunk)
    return b"".join(chunks)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


@router.post(
    "/files",
    response_model=UploadResponse,
    summary="Upload a document",
)
async def upload_file(
    gate: GateDep,
    file: Annotated[UploadFile | None, File()] = None,
    owner_id: Annotated[str | None, Form()] = None,
) -> UploadResponse:
    """Admit a document for *owner_id*; re-uploading identical bytes is a no-op."""
    if file is None or not owner_id or not owner_id.strip():
        raise BadRequestError(message="A non-empty file and an owner_id are required")

    data = await _read_capped(file, gate.max_upload_bytes)
    result = await gate.admit(
        data,
        file_name=file.filename,
        owner_id=owner_id,
        content_type=file.content_type,
    )
    return UploadResponse(
        status=result.status,
        file_id=result.file_id,
        file_hash=result.file_hash,
        duplicate=result.duplicate,
    )


@router.post(
    "/files/{file_hash}/ingest",
    response_model=IngestResponse,
    summary="Chunk and embed an uploaded document",
)
async def ingest_file(
    file_hash: str,
    body: IngestRequest,
    ingestion: IngestionDep,
) -> IngestResponse:
    result = await ingestion.ingest(file_hash, body.owner_id)
    return IngestResponse(
        status=result.status,
        chunks_processed=result.chunks_processed,
        file_hash=result.file_hash,
        owner_id=result.owner_id,
        existing=result.existing,
    )


@router.get(
    "/files",
    response_model=FileListResponse,
    summary="List an owner's uploaded documents",
)
async def list_files(
    owner_id: Annotated[str, Query(min_length=1)],
    files: FileServiceDep,
) -> FileListResponse:
    return FileListResponse(files=await files.list_files(owner_id))


@router.delete(
    "/files/{file_hash}",
    response_model=DeleteFileResponse,
    summary="Delete a document, its chunks and its stored bytes",
)
async def delete_file(
    file_hash: str,
    owner_id: Annotated[str, Query(min_length=1)],
    files: FileServiceDep,
) -> DeleteFileResponse:
    result = await files.delete_file(file_hash, owner_id)
    return DeleteFileResponse(
        file=result.file,
        chunks_deleted=result.chunks_deleted,
        object_deleted=result.object_deleted,
        failed_steps=result.failed_steps,
    )


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


@router.post(
    "/query",
    response_model=QueryResponse,
    summary="Ask a question answered from the owner's documents",
)
async def query(body: QueryRequest, composer: ComposerDep) -> QueryResponse:
    result = await composer.answer(body.question, body.owner_id)
    return QueryResponse(
        answer=result.answer,
        context=[ContextChunk.from_retrieved(r) for r in result.context],
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    vector_store = getattr(request.app.state, "vector_store", None)
    if vector_store is not None:
        try:
            providers["vector_store"] = vector_store.is_available()
        except Exception as exc:
            _logger.warning("health_vector_store_check_failed", error=str(exc))
            providers["vector_store"] = False

    embedding_handle = getattr(request.app.state, "embedding_handle", None)
    if embedding_handle is not None:
        providers["embedding_initialized"] = embedding_handle.is_initialized

    if providers.get("llm", False) and providers.get("vector_store", False):
        status = "healthy"
    elif providers.get("vector_store", False):
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(status=status, version=__version__, providers=providers)
