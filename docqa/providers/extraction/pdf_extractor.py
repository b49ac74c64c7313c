"""Text extractor for PDF documents.

Reads PDF files using PyMuPDF (fitz) and joins the text of every page with
blank lines, so page breaks become paragraph breaks for the chunker.
Supports text-based PDFs and scanned PDFs with an embedded OCR text layer.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from docqa.interfaces.text_extractor import ITextExtractor
from docqa.utils.errors import UnsupportedTypeError

logger = structlog.get_logger(logger_name=__name__)


class PDFTextExtractor(ITextExtractor):
    """Extracts page text from ``application/pdf`` files."""

    _CONTENT_TYPES = frozenset({"application/pdf"})

    def extract(self, file_path: str) -> str:
        pages = self._extract_pages(file_path)
        if not pages:
            logger.warning("pdf_no_text_extracted", file_path=file_path)
            return ""

        logger.info("pdf_extracted", file_path=file_path, pages=len(pages))
        return "\n\n".join(text for _, text in pages)

    def supported_content_types(self) -> frozenset[str]:
        return self._CONTENT_TYPES

    def get_provider_name(self) -> str:
        return "pdf"

    def _extract_pages(self, file_path: str) -> list[tuple[int, str]]:
        """Return ``(page_number, page_text)`` tuples, 1-based, skipping blank pages."""
        try:
            doc = fitz.open(file_path)
        except Exception as exc:
            logger.error("pdf_open_failed", file_path=file_path, error=str(exc))
            raise UnsupportedTypeError(
                message="File could not be read as a PDF document",
                provider_name=self.get_provider_name(),
            ) from exc

        pages: list[tuple[int, str]] = []
        try:
            for page_num in range(len(doc)):
                text = doc[page_num].get_text("text").strip()
                if text:
                    pages.append((page_num + 1, text))
        finally:
            doc.close()
        return pages
