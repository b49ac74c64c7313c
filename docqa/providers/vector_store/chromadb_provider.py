"""ChromaDB vector store provider adapter.

Wraps `chromadb.PersistentClient` to implement :class:`IVectorStoreProvider`.
Uses cosine distance for similarity search.  Fully local, free, and
Python-native -- no external service required.

Chunk metadata is stored flat (``file_hash``, ``owner_id``,
``sequence_id``) so every probe, query and delete can be expressed as a
ChromaDB ``where`` clause.
"""

from __future__ import annotations

import os
from typing import Any

# ChromaDB's bundled PostHog telemetry client is disabled both through the
# environment and directly before chromadb is imported.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from docqa.interfaces.vector_store_provider import IVectorStoreProvider
from docqa.models.rag import ChunkMetadata, RetrievedChunk, StoredChunk
from docqa.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """No-op embedding function that prevents ChromaDB from loading a model.

    docqa always passes pre-computed embeddings, so ChromaDB's built-in
    embedding is never invoked.  Without this, ChromaDB downloads its
    default ONNX model on collection creation.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "docqa uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence.

    Parameters
    ----------
    persist_directory:
        Directory where ChromaDB keeps its SQLite + HNSW files.
    collection_name:
        Name of the collection holding every owner's chunks.
    """

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "docqa_chunks",
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        # Collections persisted with a different embedding function reject
        # _NoopEmbeddingFunction with a ValueError; reopen without one.
        try:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def add_chunks(
        self,
        chunks: list[StoredChunk],
        embeddings: list[list[float]],
    ) -> int:
        """Upsert pre-embedded chunks into the collection."""
        if len(chunks) != len(embeddings):
            raise ValueError(
                f"chunks and embeddings length mismatch: {len(chunks)} != {len(embeddings)}"
            )
        if not chunks:
            return 0

        try:
            self._collection.upsert(
                ids=[c.chunk_id for c in chunks],
                embeddings=embeddings,
                documents=[c.content for c in chunks],
                metadatas=[self._chunk_to_metadata(c) for c in chunks],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB add_chunks failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_add_chunks", count=len(chunks))
        return len(chunks)

    async def has_chunks(self, file_hash: str, owner_id: str) -> bool:
        """Existence probe: fetch at most one id for the pair."""
        try:
            existing = self._collection.get(
                where=self._file_filter(file_hash, owner_id),
                limit=1,
                include=[],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB existence probe failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return bool(existing["ids"])

    async def count_chunks(self, file_hash: str, owner_id: str) -> int:
        try:
            existing = self._collection.get(
                where=self._file_filter(file_hash, owner_id),
                include=[],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return len(existing["ids"]) if existing["ids"] else 0

    async def query(
        self,
        query_embedding: list[float],
        *,
        owner_id: str,
        top_k: int = 4,
    ) -> list[RetrievedChunk]:
        """Cosine similarity search over *owner_id*'s chunks only."""
        try:
            if self._collection.count() == 0:
                return []

            results = self._collection.query(
                query_embeddings=[query_embedding],
                n_results=top_k,
                where={"owner_id": owner_id},
            )

            if not results["documents"] or not results["documents"][0]:
                return []

            ids = results["ids"][0]
            documents = results["documents"][0]
            metadatas = results["metadatas"][0] if results["metadatas"] else [{}] * len(documents)
            distances = results["distances"][0] if results["distances"] else [0.0] * len(documents)

            retrieved: list[RetrievedChunk] = []
            for chunk_id, doc_text, meta, distance in zip(
                ids, documents, metadatas, distances, strict=True
            ):
                similarity = max(0.0, min(1.0, 1.0 - distance))
                retrieved.append(
                    RetrievedChunk(
                        chunk=self._metadata_to_chunk(chunk_id, meta, doc_text),
                        similarity_score=similarity,
                    )
                )
            retrieved.sort(key=lambda rc: rc.similarity_score, reverse=True)

            logger.info(
                "chromadb_query",
                owner_id=owner_id,
                results_count=len(retrieved),
                top_score=retrieved[0].similarity_score if retrieved else 0.0,
            )
            return retrieved

        except RAGError:
            raise
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def delete_by_file(self, file_hash: str, owner_id: str) -> int:
        """Delete all chunks of one owner's copy of a file."""
        where = self._file_filter(file_hash, owner_id)
        try:
            existing = self._collection.get(where=where, include=[])
            count = len(existing["ids"]) if existing["ids"] else 0
            if count > 0:
                self._collection.delete(ids=existing["ids"])
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB delete_by_file failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "chromadb_delete_by_file",
            file_hash=file_hash,
            owner_id=owner_id,
            deleted_count=count,
        )
        return count

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB collection is accessible."""
        try:
            self._collection.count()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _file_filter(file_hash: str, owner_id: str) -> dict[str, Any]:
        return {"$and": [{"file_hash": file_hash}, {"owner_id": owner_id}]}

    @staticmethod
    def _chunk_to_metadata(chunk: StoredChunk) -> dict[str, str | int]:
        return {
            "file_hash": chunk.metadata.file_hash,
            "owner_id": chunk.metadata.owner_id,
            "sequence_id": chunk.metadata.sequence_id,
        }

    @staticmethod
    def _metadata_to_chunk(chunk_id: str, meta: dict[str, Any], text: str) -> StoredChunk:
        """Reverse :meth:`_chunk_to_metadata`."""
        return StoredChunk(
            chunk_id=chunk_id,
            content=text,
            metadata=ChunkMetadata(
                file_hash=str(meta.get("file_hash", "")),
                owner_id=str(meta.get("owner_id", "")),
                sequence_id=int(meta.get("sequence_id", 0)),
            ),
        )
