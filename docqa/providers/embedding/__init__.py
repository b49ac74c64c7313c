"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture semantic meaning.
These vectors are stored in ChromaDB and used for similarity search.

Two implementations of IEmbeddingProvider (listed in priority order):
    1. OpenAIEmbeddingProvider -- text-embedding-3-small (1536 dims), or any
       OpenAI-compatible host when OPENAI_BASE_URL is set.
    2. NomicEmbeddingProvider  -- nomic-embed-text via Ollama (768 dims).

Both are reached through :class:`EmbeddingHandle`, the process-wide lazy
cache that guarantees ingestion and queries share one model.
"""

from docqa.providers.embedding.handle import EmbeddingHandle
from docqa.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from docqa.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["EmbeddingHandle", "NomicEmbeddingProvider", "OpenAIEmbeddingProvider"]
