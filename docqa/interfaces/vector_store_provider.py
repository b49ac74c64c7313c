"""Abstract base class for vector-store service providers.

Defines the contract for storing, probing, querying and deleting embedded
document chunks.  Implementations may wrap ChromaDB (local/free), pgvector,
Qdrant, or any other vector database.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docqa.models.rag import RetrievedChunk, StoredChunk


# Concrete implementation: ChromaDBProvider (docqa/providers/vector_store/)
# Data persists to disk at CHROMADB_PERSIST_DIR.
class IVectorStoreProvider(ABC):
    """Contract for the chunk + vector store used by the RAG pipeline.

    Every read is scoped by owner.  :meth:`query` takes ``owner_id`` as a
    required keyword argument and implementations must apply it as an
    equality filter inside the backend query -- it is the only tenant
    isolation mechanism for retrieval.
    """

    @abstractmethod
    async def add_chunks(
        self,
        chunks: list[StoredChunk],
        embeddings: list[list[float]],
    ) -> int:
        """Write pre-embedded chunks (upsert by ``chunk_id``).

        Parameters
        ----------
        chunks:
            Chunks to store.
        embeddings:
            Vectors corresponding positionally to *chunks*.

        Returns
        -------
        int
            The number of chunks written.

        Raises
        ------
        ValueError
            If ``len(chunks) != len(embeddings)``.
        docqa.utils.errors.RAGError
            If the store operation fails.
        """

    @abstractmethod
    async def has_chunks(self, file_hash: str, owner_id: str) -> bool:
        """Return ``True`` if at least one chunk exists for the pair.

        This is an existence probe (limit 1), not a completeness check.
        """

    @abstractmethod
    async def count_chunks(self, file_hash: str, owner_id: str) -> int:
        """Return the number of chunks stored for the pair."""

    @abstractmethod
    async def query(
        self,
        query_embedding: list[float],
        *,
        owner_id: str,
        top_k: int = 4,
    ) -> list[RetrievedChunk]:
        """Similarity search restricted to *owner_id*'s chunks.

        Returns
        -------
        list[RetrievedChunk]
            Zero or more results ordered by descending similarity.

        Raises
        ------
        docqa.utils.errors.RAGError
            If the vector store query fails.
        """

    @abstractmethod
    async def delete_by_file(self, file_hash: str, owner_id: str) -> int:
        """Delete every chunk of ``(file_hash, owner_id)``.

        Chunks of the same digest owned by someone else are untouched.

        Returns
        -------
        int
            The number of chunks deleted.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is reachable."""
