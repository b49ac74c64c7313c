"""Abstract base class for format-specific text extractors.

Each extractor turns a local file of one family of content types into plain
text.  The ingestion pipeline picks an extractor by the content type that
was recorded at upload time; supporting a new format means adding a class,
not touching the pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: PDFTextExtractor, DocxTextExtractor,
# PlainTextExtractor (docqa/providers/extraction/)
class ITextExtractor(ABC):
    """Contract for converting a materialized document into plain text."""

    @abstractmethod
    def extract(self, file_path: str) -> str:
        """Read *file_path* and return its text content.

        Returns an empty string when the document contains no text.

        Raises
        ------
        docqa.utils.errors.UnsupportedTypeError
            If the file cannot be parsed as the declared format.
        """

    @abstractmethod
    def supported_content_types(self) -> frozenset[str]:
        """Return the MIME types this extractor accepts."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"pdf"``."""
