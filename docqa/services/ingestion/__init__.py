"""Document ingestion pipeline.

Orchestrates: **probe -> fetch -> extract -> chunk -> embed -> store**.

1. **Extract** (extractors.py / ExtractorRegistry) -- picks the PDF, DOCX
   or plain-text extractor from the content type recorded at upload.

2. **Chunk** (chunker.py / TextChunker) -- splits the text into 1000-char
   overlapping windows, ending each at the most natural break available.

3. **Embed and store** (ingestion_service.py / IngestionService) -- tags each
   window with its owner, file digest and sequence position, then embeds and
   writes it in sequential batches.
"""

from docqa.services.ingestion.chunker import TextChunker
from docqa.services.ingestion.extractors import ExtractorRegistry
from docqa.services.ingestion.ingestion_service import IngestionService

__all__ = [
    "ExtractorRegistry",
    "IngestionService",
    "TextChunker",
]
