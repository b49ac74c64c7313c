"""Content-type dispatch for text extractors."""

from __future__ import annotations

import mimetypes

from docqa.interfaces.text_extractor import ITextExtractor
from docqa.models.files import DOCX_CONTENT_TYPE
from docqa.providers.extraction import DocxTextExtractor, PDFTextExtractor, PlainTextExtractor
from docqa.utils.errors import UnsupportedTypeError

# mimetypes does not know .docx on every platform.
_SUFFIX_OVERRIDES = {DOCX_CONTENT_TYPE: ".docx", "text/plain": ".txt"}


def normalize_content_type(content_type: str) -> str:
    """Drop MIME parameters and lowercase: ``"Text/Plain; charset=utf-8"`` → ``"text/plain"``."""
    return content_type.split(";")[0].strip().lower()


def suffix_for(content_type: str) -> str:
    """Return a file suffix matching *content_type*, or ``""`` if unknown."""
    normalized = normalize_content_type(content_type)
    return _SUFFIX_OVERRIDES.get(normalized) or mimetypes.guess_extension(normalized) or ""


class ExtractorRegistry:
    """Maps MIME types to the extractor that can read them.

    When two extractors claim the same type the later one wins.
    """

    def __init__(self, extractors: list[ITextExtractor]) -> None:
        self._by_type: dict[str, ITextExtractor] = {}
        for extractor in extractors:
            for content_type in extractor.supported_content_types():
                self._by_type[normalize_content_type(content_type)] = extractor

    @classmethod
    def default(cls) -> ExtractorRegistry:
        """Registry covering PDF, DOCX and plain text."""
        return cls([PDFTextExtractor(), DocxTextExtractor(), PlainTextExtractor()])

    def for_content_type(self, content_type: str) -> ITextExtractor:
        """Return the extractor for *content_type*.

        Raises
        ------
        UnsupportedTypeError
            If no registered extractor handles the type.
        """
        try:
            return self._by_type[normalize_content_type(content_type)]
        except KeyError:
            raise UnsupportedTypeError(
                message=f"No text extractor for content type: {content_type}",
            ) from None

    def supported_content_types(self) -> frozenset[str]:
        return frozenset(self._by_type)
