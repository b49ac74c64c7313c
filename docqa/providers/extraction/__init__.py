"""Format-specific text extractors.

One ITextExtractor per content-type family:
    - PDFTextExtractor   -- application/pdf via PyMuPDF
    - DocxTextExtractor  -- Word .docx via python-docx
    - PlainTextExtractor -- text/plain
"""

from docqa.models.files import DOCX_CONTENT_TYPE
from docqa.providers.extraction.docx_extractor import DocxTextExtractor
from docqa.providers.extraction.pdf_extractor import PDFTextExtractor
from docqa.providers.extraction.text_extractor import PlainTextExtractor

__all__ = ["DOCX_CONTENT_TYPE", "DocxTextExtractor", "PDFTextExtractor", "PlainTextExtractor"]
