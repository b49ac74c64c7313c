"""Text extractor for Word (.docx) documents via python-docx.

python-docx reads the XML inside the DOCX zip archive; paragraph text is
kept and formatting is stripped.  Table cells are appended after the body
paragraphs so tabular content is still searchable.
"""

from __future__ import annotations

import structlog
from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from docqa.interfaces.text_extractor import ITextExtractor
from docqa.models.files import DOCX_CONTENT_TYPE
from docqa.utils.errors import UnsupportedTypeError

logger = structlog.get_logger(logger_name=__name__)


class DocxTextExtractor(ITextExtractor):
    """Extracts paragraph and table text from DOCX files."""

    def extract(self, file_path: str) -> str:
        try:
            doc = Document(file_path)
        except (PackageNotFoundError, ValueError, KeyError) as exc:
            raise UnsupportedTypeError(
                message="File could not be read as a DOCX document",
                provider_name=self.get_provider_name(),
            ) from exc

        blocks = [para.text for para in doc.paragraphs if para.text.strip()]
        for table in doc.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    blocks.append(" | ".join(cells))

        logger.info("docx_extracted", file_path=file_path, blocks=len(blocks))
        return "\n\n".join(blocks)

    def supported_content_types(self) -> frozenset[str]:
        return frozenset({DOCX_CONTENT_TYPE})

    def get_provider_name(self) -> str:
        return "docx"
