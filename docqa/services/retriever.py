"""Owner-scoped semantic retrieval over stored chunks."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from docqa.models.rag import RetrievedChunk
from docqa.utils.errors import BadRequestError

if TYPE_CHECKING:
    from docqa.interfaces.vector_store_provider import IVectorStoreProvider
    from docqa.providers.embedding.handle import EmbeddingHandle

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_TOP_K = 4


class Retriever:
    """Embeds a question and returns the owner's most similar chunks.

    The owner filter is pushed into the vector-store query.  Results are
    checked again on the way out and any row whose metadata names another
    owner is discarded and logged.

    Parameters
    ----------
    embedding_handle:
        The same handle the ingestion service embeds with.
    vector_store:
        Store queried with an ``owner_id`` equality filter.
    top_k:
        Default number of results.
    """

    def __init__(
        self,
        embedding_handle: EmbeddingHandle,
        vector_store: IVectorStoreProvider,
        top_k: int = DEFAULT_TOP_K,
    ) -> None:
        self._embedding_handle = embedding_handle
        self._vector_store = vector_store
        self._top_k = top_k

    async def retrieve(
        self,
        question: str,
        owner_id: str,
        top_k: int | None = None,
    ) -> list[RetrievedChunk]:
        """Return up to *top_k* of *owner_id*'s chunks, most similar first.

        Raises
        ------
        BadRequestError
            If *owner_id* or *question* is blank.
        """
        if not owner_id or not owner_id.strip():
            raise BadRequestError(message="owner_id is required for retrieval")
        if not question or not question.strip():
            raise BadRequestError(message="question must not be empty")

        k = top_k if top_k is not None else self._top_k
        embedding = await self._embedding_handle.get().embed_single(question)
        results = await self._vector_store.query(embedding, owner_id=owner_id, top_k=k)

        scoped = [r for r in results if r.chunk.metadata.owner_id == owner_id]
        if len(scoped) != len(results):
            logger.warning(
                "retrieval_foreign_chunks_dropped",
                owner_id=owner_id,
                dropped=len(results) - len(scoped),
            )

        scoped.sort(key=lambda r: r.similarity_score, reverse=True)
        logger.debug(
            "retrieval_complete",
            owner_id=owner_id,
            results=len(scoped),
            top_score=scoped[0].similarity_score if scoped else None,
        )
        return scoped
