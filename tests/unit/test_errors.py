"""Unit tests for the DocQAError hierarchy."""

from __future__ import annotations

import pytest

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


@pytest.mark.parametrize(
    ("cls", "status"),
    [
        (DocQAError, 500),
        (BadRequestError, 400),
        (PayloadTooLargeError, 413),
        (UnsupportedTypeError, 415),
        (QuotaExceededError, 429),
        (ConflictError, 409),
        (NotFoundError, 404),
        (WriteFailedError, 500),
        (GenerationFailedError, 502),
        (NoDocumentsError, 404),
        (LLMError, 502),
        (RAGError, 502),
        (ConfigurationError, 500),
    ],
)
def test_status_codes(cls: type[DocQAError], status: int) -> None:
    err = cls()
    assert err.status_code == status
    assert isinstance(err, DocQAError)


def test_str_prefixes_provider() -> None:
    assert str(LLMError("rate limited", provider_name="openai")) == "[openai] rate limited"
    assert str(LLMError("rate limited")) == "rate limited"


def test_message_and_provider_properties() -> None:
    err = WriteFailedError(message="disk full", provider_name="sqlite_registry")
    assert err.message == "disk full"
    assert err.provider_name == "sqlite_registry"
