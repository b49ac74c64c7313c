"""Custom exception hierarchy for docqa.

All application exceptions inherit from :class:`DocQAError`, which carries
an optional ``provider_name`` so error handlers can identify which external
service (e.g. "openai", "chromadb", "sqlite_registry") caused the failure.

Every class also declares the HTTP ``status_code`` the API layer should use
when the error escapes a request handler:

    DocQAError  (base -- catch-all, 500)
    +-- BadRequestError        (missing / malformed input, 400)
    +-- PayloadTooLargeError   (upload over the size limit, 413)
    +-- UnsupportedTypeError   (extension or content type not handled, 415)
    +-- QuotaExceededError     (per-owner file quota reached, 429)
    +-- ConflictError          (storage key or unique row already exists, 409)
    +-- NotFoundError          (object or metadata missing, 404)
    +-- WriteFailedError       (batch or row persistence failed, 500)
    +-- GenerationFailedError  (model exhausted its retry budget, 502)
    +-- NoDocumentsError       (query before any upload, 404)
    +-- LLMError               (a single LLM API call failed, 502)
    +-- RAGError               (embedding or vector-store failure, 502)
    +-- ConfigurationError     (startup / missing config, 500)

Services translate provider-level errors (``LLMError``, ``RAGError``) into
the operation-level errors above before they reach a caller.
"""


class DocQAError(Exception):
    """Base exception for all docqa errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request validation errors (raised before any side effect)
# ---------------------------------------------------------------------------

class BadRequestError(DocQAError):
    """Raised when a required field is missing or malformed."""

    status_code = 400

    def __init__(
        self,
        message: str = "Missing or malformed request fields",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PayloadTooLargeError(DocQAError):
    """Raised when an upload exceeds the configured byte limit."""

    status_code = 413

    def __init__(
        self,
        message: str = "File exceeds the maximum upload size",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedTypeError(DocQAError):
    """Raised when a file extension or content type has no handler."""

    status_code = 415

    def __init__(
        self,
        message: str = "Unsupported file type",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class QuotaExceededError(DocQAError):
    """Raised when an owner already holds the maximum number of files."""

    status_code = 429

    def __init__(
        self,
        message: str = "Upload quota exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------

class ConflictError(DocQAError):
    """Raised when a write races an existing object key or unique row."""

    status_code = 409

    def __init__(
        self,
        message: str = "Resource already exists",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(DocQAError):
    """Raised when a stored object or metadata row cannot be found."""

    status_code = 404

    def __init__(
        self,
        message: str = "Resource not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class WriteFailedError(DocQAError):
    """Raised when persisting a metadata row or a chunk batch fails.

    Batch failures during ingestion are not rolled back -- earlier
    batches remain durably written.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Failed to persist data",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Query-time errors
# ---------------------------------------------------------------------------

class GenerationFailedError(DocQAError):
    """Raised when the generation model fails on every retry attempt."""

    status_code = 502

    def __init__(
        self,
        message: str = "Answer generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NoDocumentsError(DocQAError):
    """Raised when an owner queries before uploading any file."""

    status_code = 404

    def __init__(
        self,
        message: str = "No file found, please upload a file first",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Provider-level errors
# ---------------------------------------------------------------------------

class LLMError(DocQAError):
    """Raised when an LLM API call fails or returns an empty response."""

    status_code = 502

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RAGError(DocQAError):
    """Raised when a RAG operation fails (embedding or vector store)."""

    status_code = 502

    def __init__(
        self,
        message: str = "RAG pipeline operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(DocQAError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
