"""Text extractor for plain-text files."""

from __future__ import annotations

import structlog

from docqa.interfaces.text_extractor import ITextExtractor
from docqa.utils.errors import UnsupportedTypeError

logger = structlog.get_logger(logger_name=__name__)


class PlainTextExtractor(ITextExtractor):
    """Reads ``text/plain`` files as UTF-8 (a leading BOM is dropped)."""

    def extract(self, file_path: str) -> str:
        try:
            with open(file_path, encoding="utf-8-sig") as fh:
                text = fh.read()
        except UnicodeDecodeError as exc:
            raise UnsupportedTypeError(
                message="File is not valid UTF-8 text",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("text_extracted", file_path=file_path, characters=len(text))
        return text

    def supported_content_types(self) -> frozenset[str]:
        return frozenset({"text/plain"})

    def get_provider_name(self) -> str:
        return "plain_text"
