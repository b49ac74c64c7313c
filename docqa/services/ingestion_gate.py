"""Upload admission: policy checks, dedup, and the two durable writes.

:class:`IngestionGate` is the only code path that creates
:class:`~docqa.models.files.UploadedFile` rows and raw objects.  Checks run
in a fixed order and each one short-circuits with its own error, before any
durable write happens:

    1. presence   -- bytes, file name and owner id      → BadRequestError
    2. size       -- len(bytes) <= max_upload_bytes      → PayloadTooLargeError
    3. extension  -- suffix in the allow-list            → UnsupportedTypeError
    4. digest     -- sha256 of the bytes
    5. dedup      -- row for (digest, owner) exists      → no-op success
    6. quota      -- owner already holds the maximum     → QuotaExceededError
    7. object     -- put(key, overwrite=False)           → ConflictError on race
    8. row        -- registry insert                     → Conflict/WriteFailed

The dedup probe is decided before the quota rejection so that re-uploading
a file the owner already has succeeds even at full quota.

Object write and row insert are two independent stores with no shared
transaction.  When the insert fails the object is deleted once as a
compensating action; a failed compensation is logged and the insert error
is what the caller sees.
"""

from __future__ import annotations

import structlog

from docqa.interfaces.file_registry import IFileRegistry
from docqa.interfaces.object_store import IObjectStore
from docqa.models.files import DOCX_CONTENT_TYPE, UploadResult
from docqa.services.hashing import content_digest, object_key
from docqa.utils.errors import (
    BadRequestError,
    PayloadTooLargeError,
    QuotaExceededError,
    UnsupportedTypeError,
)

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_MAX_UPLOAD_BYTES = 4 * 1024 * 1024
DEFAULT_ALLOWED_EXTENSIONS = frozenset(
    {".pdf", ".txt", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx"}
)
DEFAULT_MAX_FILES_PER_OWNER = 5

# Fallback content types when the client sends none or a generic one.
_EXTENSION_CONTENT_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".doc": "application/msword",
    ".docx": DOCX_CONTENT_TYPE,
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}
_GENERIC_CONTENT_TYPES = frozenset({"", "application/octet-stream", "binary/octet-stream"})


def file_extension(file_name: str) -> str:
    """Return the lowercased text after the last ``.``, with the dot.

    ``"report.final.PDF"`` → ``".pdf"``; names without a dot yield ``""``.
    """
    if "." not in file_name:
        return ""
    return "." + file_name.rsplit(".", 1)[-1].lower()


def resolve_content_type(declared: str | None, extension: str) -> str:
    """Prefer the declared MIME type; fall back to one inferred from *extension*."""
    normalized = (declared or "").split(";")[0].strip().lower()
    if normalized in _GENERIC_CONTENT_TYPES:
        return _EXTENSION_CONTENT_TYPES.get(extension, "application/octet-stream")
    return normalized


class IngestionGate:
    """Validates and admits uploads into the object store and file registry.

    Parameters
    ----------
    object_store:
        Destination for the raw bytes.
    file_registry:
        Metadata store holding one row per ``(file_hash, owner_id)``.
    max_upload_bytes:
        Inclusive size limit.
    allowed_extensions:
        Lowercase extensions including the dot.
    max_files_per_owner:
        Per-owner quota on distinct files.
    """

    def __init__(
        self,
        object_store: IObjectStore,
        file_registry: IFileRegistry,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        allowed_extensions: frozenset[str] | set[str] | list[str] = DEFAULT_ALLOWED_EXTENSIONS,
        max_files_per_owner: int = DEFAULT_MAX_FILES_PER_OWNER,
    ) -> None:
        self._object_store = object_store
        self._file_registry = file_registry
        self._max_upload_bytes = max_upload_bytes
        self._allowed_extensions = frozenset(ext.lower() for ext in allowed_extensions)
        self._max_files_per_owner = max_files_per_owner

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    async def admit(
        self,
        data: bytes | None,
        file_name: str | None,
        owner_id: str | None,
        content_type: str | None = None,
    ) -> UploadResult:
        """Run every admission check and persist the upload.

        Returns
        -------
        UploadResult
            ``duplicate=True`` with the existing row id when the owner had
            already uploaded identical bytes.
        """
        # -- 1. presence --
        if not data or not file_name or not owner_id or not owner_id.strip():
            raise BadRequestError(message="A non-empty file and an owner_id are required")

        # -- 2. size --
        if len(data) > self._max_upload_bytes:
            limit_mb = self._max_upload_bytes / (1024 * 1024)
            raise PayloadTooLargeError(
                message=f"File size exceeds the {limit_mb:g} MB limit",
            )

        # -- 3. extension --
        extension = file_extension(file_name)
        if extension not in self._allowed_extensions:
            raise UnsupportedTypeError(
                message=(
                    f"Unsupported file type: {extension or 'none'}. "
                    f"Allowed: {', '.join(sorted(self._allowed_extensions))}"
                ),
            )

        # -- 4. digest --
        file_hash = content_digest(data)

        # -- 5. dedup --
        existing = await self._file_registry.get(file_hash, owner_id)
        if existing is not None:
            logger.info(
                "upload_duplicate",
                file_id=existing.id,
                file_hash=file_hash,
                owner_id=owner_id,
            )
            return UploadResult(file_id=existing.id, file_hash=file_hash, duplicate=True)

        # -- 6. quota --
        owned = await self._file_registry.count_by_owner(owner_id)
        if owned >= self._max_files_per_owner:
            raise QuotaExceededError(
                message=(
                    f"Upload limit reached: at most {self._max_files_per_owner} files per user"
                ),
            )

        # -- 7. object write --
        key = object_key(file_hash, owner_id)
        resolved_type = resolve_content_type(content_type, extension)
        await self._object_store.put(key, data, content_type=resolved_type, overwrite=False)

        # -- 8. row insert (with compensation) --
        try:
            record = await self._file_registry.insert(
                file_name=file_name,
                file_hash=file_hash,
                owner_id=owner_id,
                content_type=resolved_type,
                size_bytes=len(data),
            )
        except Exception:
            await self._compensate(key, file_hash=file_hash, owner_id=owner_id)
            raise

        logger.info(
            "upload_admitted",
            file_id=record.id,
            file_hash=file_hash,
            owner_id=owner_id,
            size=len(data),
            content_type=resolved_type,
        )
        return UploadResult(file_id=record.id, file_hash=file_hash)

    async def _compensate(self, key: str, *, file_hash: str, owner_id: str) -> None:
        """Delete the orphaned object once; never raise."""
        try:
            await self._object_store.delete([key])
            logger.warning("compensating_delete_done", file_hash=file_hash, owner_id=owner_id)
        except Exception as exc:
            logger.error(
                "compensating_delete_failed",
                file_hash=file_hash,
                owner_id=owner_id,
                error=str(exc),
            )
