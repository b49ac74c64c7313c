"""Utility modules for docqa.

- **errors** -- Domain exception hierarchy rooted at DocQAError; every class
  carries the HTTP status the API layer reports for it.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from docqa.utils.errors import (
    BadRequestError,
    ConfigurationError,
    ConflictError,
    DocQAError,
    GenerationFailedError,
    LLMError,
    NoDocumentsError,
    NotFoundError,
    PayloadTooLargeError,
    QuotaExceededError,
    RAGError,
    UnsupportedTypeError,
    WriteFailedError,
)
from docqa.utils.logging import configure_logging, get_logger

__all__ = [
    "BadRequestError",
    "ConfigurationError",
    "ConflictError",
    "DocQAError",
    "GenerationFailedError",
    "LLMError",
    "NoDocumentsError",
    "NotFoundError",
    "PayloadTooLargeError",
    "QuotaExceededError",
    "RAGError",
    "UnsupportedTypeError",
    "WriteFailedError",
    "configure_logging",
    "get_logger",
]
