"""RAG pipeline data models.

Defines Pydantic v2 models for chunker output, stored chunks, retrieval
results, ingestion outcomes and composed answers.  All models are frozen.

RAG overview:

    1. INGESTION: an uploaded document is extracted to plain text and split
       into overlapping character windows (:class:`TextChunk`).
    2. EMBEDDING: each window is converted into a numeric vector.
    3. STORAGE: windows become :class:`StoredChunk` rows in ChromaDB, tagged
       with the owning file digest, owner id and sequence position.
    4. RETRIEVAL: a question is embedded and matched against the owner's
       chunks only (:class:`RetrievedChunk`).
    5. GENERATION: retrieved chunks are placed in the LLM prompt as context
       and the model's answer is returned with them (:class:`QueryAnswer`).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TextChunk(BaseModel):
    """A contiguous window of extracted text produced by the chunker.

    ``start`` and ``end`` are character offsets into the source text, so
    ``source[start:end] == text`` always holds.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    start: int = Field(ge=0)
    end: int = Field(ge=0)


class ChunkMetadata(BaseModel):
    """Ownership and ordering metadata attached to every stored chunk."""

    model_config = ConfigDict(frozen=True)

    file_hash: str
    owner_id: str
    sequence_id: int = Field(ge=0, description="Position in the file's full chunk sequence.")


class StoredChunk(BaseModel):
    """A chunk persisted in the vector store.

    ``chunk_id`` is derived from the metadata, so rewriting the same file
    for the same owner upserts in place instead of duplicating rows.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str
    content: str
    metadata: ChunkMetadata

    @staticmethod
    def make_id(file_hash: str, owner_id: str, sequence_id: int) -> str:
        return f"{file_hash}:{owner_id}:{sequence_id}"


class RetrievedChunk(BaseModel):
    """A stored chunk returned from a similarity search."""

    model_config = ConfigDict(frozen=True)

    chunk: StoredChunk
    similarity_score: float = Field(
        ge=0.0,
        le=1.0,
        description="Cosine similarity (0 = unrelated, 1 = identical).",
    )


class IngestionResult(BaseModel):
    """Outcome of ingesting one ``(file_hash, owner_id)`` pair."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    file_hash: str
    owner_id: str
    chunks_processed: int = Field(default=0, ge=0)
    existing: bool = Field(
        default=False,
        description="True when chunks were already present and nothing was written.",
    )
    batches_written: int = Field(default=0, ge=0)
    ingestion_time: float = Field(default=0.0, ge=0.0, description="Wall-clock seconds.")


class QueryAnswer(BaseModel):
    """A grounded answer plus the exact ordered context it was built from."""

    model_config = ConfigDict(frozen=True)

    answer: str
    context: list[RetrievedChunk] = Field(default_factory=list)
