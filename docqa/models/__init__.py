"""docqa domain models -- re-exports all public model classes.

    - files.py -- uploaded-file rows, raw objects, upload / delete outcomes
    - rag.py   -- chunker windows, stored and retrieved chunks, answers
"""

from __future__ import annotations

from docqa.models.files import DeleteResult, StoredObject, UploadedFile, UploadResult
from docqa.models.rag import (
    ChunkMetadata,
    IngestionResult,
    QueryAnswer,
    RetrievedChunk,
    StoredChunk,
    TextChunk,
)

__all__ = [
    # files
    "DeleteResult",
    "StoredObject",
    "UploadResult",
    "UploadedFile",
    # rag
    "ChunkMetadata",
    "IngestionResult",
    "QueryAnswer",
    "RetrievedChunk",
    "StoredChunk",
    "TextChunk",
]
