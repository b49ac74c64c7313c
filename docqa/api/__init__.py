"""docqa API layer: routes, schemas, and middleware."""

from docqa.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    install_exception_handlers,
)
from docqa.api.routes import router
from docqa.api.schemas import (
    DeleteFileResponse,
    ErrorResponse,
    FileListResponse,
    HealthResponse,
    IngestRequest,
    IngestResponse,
    QueryRequest,
    QueryResponse,
    UploadResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "install_exception_handlers",
    "router",
    "DeleteFileResponse",
    "ErrorResponse",
    "FileListResponse",
    "HealthResponse",
    "IngestRequest",
    "IngestResponse",
    "QueryRequest",
    "QueryResponse",
    "UploadResponse",
]
