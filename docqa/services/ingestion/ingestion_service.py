"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **probe -> fetch -> extract -> chunk -> embed -> store**.

The :class:`IngestionService` coordinates its collaborators (object store,
extractor registry, chunker, embedding handle, vector store) without any of
them knowing about each other:

    1. IVectorStoreProvider -- existence probe; a file already chunked for
       this owner is reported and left untouched
    2. IObjectStore -- fetches the raw bytes written at upload time
    3. ExtractorRegistry -- picks a text extractor by stored content type
    4. TextChunker -- splits the text into overlapping character windows
    5. IEmbeddingProvider -- generates dense vectors, one batch at a time
    6. IVectorStoreProvider -- persists each embedded batch

Batches are written sequentially.  A failing batch aborts the run with
:class:`~docqa.utils.errors.WriteFailedError`; batches already written stay
in the store, and the probe treats any stored chunk as "already ingested".
"""

from __future__ import annotations

import asyncio
import os
import tempfile
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

from docqa.models.rag import ChunkMetadata, IngestionResult, StoredChunk
from docqa.services.hashing import object_key
from docqa.services.ingestion.chunker import TextChunker
from docqa.services.ingestion.extractors import ExtractorRegistry, suffix_for
from docqa.utils.errors import BadRequestError, DocQAError, WriteFailedError

if TYPE_CHECKING:
    from docqa.interfaces.object_store import IObjectStore
    from docqa.interfaces.text_extractor import ITextExtractor
    from docqa.interfaces.vector_store_provider import IVectorStoreProvider
    from docqa.models.files import StoredObject
    from docqa.providers.embedding.handle import EmbeddingHandle

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_BATCH_SIZE = 30


@contextmanager
def _materialized(data: bytes, suffix: str) -> Iterator[str]:
    """Write *data* to a named temporary file and yield its path.

    The file is removed on exit, whether or not the body raised.
    """
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        tmp.write(data)
        path = tmp.name
    try:
        yield path
    finally:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass


class IngestionService:
    """Turns one uploaded file into owner-scoped, embedded chunks.

    Parameters
    ----------
    chunker:
        Splits extracted text into overlapping windows.
    embedding_handle:
        Shared lazy handle; retrieval resolves the same provider.
    vector_store:
        Destination for embedded chunks.
    object_store:
        Source of the raw uploaded bytes.
    extractors:
        Content-type to extractor mapping.
    batch_size:
        Chunks embedded and written per round trip.
    """

    def __init__(
        self,
        chunker: TextChunker,
        embedding_handle: EmbeddingHandle,
        vector_store: IVectorStoreProvider,
        object_store: IObjectStore,
        extractors: ExtractorRegistry | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._chunker = chunker
        self._embedding_handle = embedding_handle
        self._vector_store = vector_store
        self._object_store = object_store
        self._extractors = extractors or ExtractorRegistry.default()
        self._batch_size = batch_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(self, file_hash: str | None, owner_id: str | None) -> IngestionResult:
        """Ingest the file stored under ``(file_hash, owner_id)``.

        Returns
        -------
        IngestionResult
            ``existing=True`` when the probe found chunks and nothing was
            written; otherwise the number of chunks and batches written.

        Raises
        ------
        BadRequestError
            If either identifier is missing.
        NotFoundError
            If no raw object exists for the pair.
        UnsupportedTypeError
            If the stored content type has no extractor.
        WriteFailedError
            If any embedding or store batch fails.
        """
        if not file_hash or not owner_id or not owner_id.strip():
            raise BadRequestError(message="file_hash and owner_id are required")

        start = time.monotonic()

        # Step 1: idempotency probe.
        if await self._vector_store.has_chunks(file_hash, owner_id):
            count = await self._vector_store.count_chunks(file_hash, owner_id)
            logger.info(
                "ingestion_skipped_existing",
                file_hash=file_hash,
                owner_id=owner_id,
                chunks=count,
            )
            return IngestionResult(
                file_hash=file_hash,
                owner_id=owner_id,
                chunks_processed=count,
                existing=True,
            )

        # Steps 2-3: fetch the raw object and pick an extractor.
        stored = await self._object_store.get(object_key(file_hash, owner_id))
        extractor = self._extractors.for_content_type(stored.content_type)

        # Step 4: extract and chunk.
        text = await self._extract(extractor, stored)
        windows = self._chunker.chunk(text)
        if not windows:
            logger.warning(
                "ingestion_no_text",
                file_hash=file_hash,
                owner_id=owner_id,
                extractor=extractor.get_provider_name(),
            )
            return IngestionResult(
                file_hash=file_hash,
                owner_id=owner_id,
                ingestion_time=round(time.monotonic() - start, 2),
            )

        chunks = [
            StoredChunk(
                chunk_id=StoredChunk.make_id(file_hash, owner_id, sequence_id),
                content=window.text,
                metadata=ChunkMetadata(
                    file_hash=file_hash,
                    owner_id=owner_id,
                    sequence_id=sequence_id,
                ),
            )
            for sequence_id, window in enumerate(windows)
        ]

        # Steps 5-6: embed and store.
        batches = await self._embed_and_store(chunks)

        result = IngestionResult(
            file_hash=file_hash,
            owner_id=owner_id,
            chunks_processed=len(chunks),
            batches_written=batches,
            ingestion_time=round(time.monotonic() - start, 2),
        )
        logger.info(
            "ingestion_complete",
            file_hash=file_hash,
            owner_id=owner_id,
            chunks=result.chunks_processed,
            batches=batches,
            time_s=result.ingestion_time,
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _extract(self, extractor: ITextExtractor, stored: StoredObject) -> str:
        """Run the blocking extractor against a temporary copy of the bytes."""
        with _materialized(stored.data, suffix_for(stored.content_type)) as path:
            return await asyncio.to_thread(extractor.extract, path)

    async def _embed_and_store(self, chunks: list[StoredChunk]) -> int:
        """Embed and write *chunks* in sequential batches; return the batch count."""
        embedder = self._embedding_handle.get()
        batches = 0

        for batch_index, offset in enumerate(range(0, len(chunks), self._batch_size)):
            batch = chunks[offset : offset + self._batch_size]
            try:
                embeddings = await embedder.embed([c.content for c in batch])
                await self._vector_store.add_chunks(batch, embeddings)
            except (DocQAError, ValueError) as exc:
                logger.error(
                    "ingestion_batch_failed",
                    batch=batch_index,
                    chunks_written=offset,
                    file_hash=batch[0].metadata.file_hash,
                    owner_id=batch[0].metadata.owner_id,
                    error=str(exc),
                )
                raise WriteFailedError(
                    message=f"Failed to write chunk batch {batch_index}: {exc}",
                ) from exc

            batches += 1
            logger.info(
                "ingestion_batch_written",
                batch=batch_index,
                size=len(batch),
                file_hash=batch[0].metadata.file_hash,
            )

        return batches
