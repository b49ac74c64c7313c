"""Public interface definitions for all external collaborators.

Every external service docqa talks to -- object storage, the file-metadata
database, the vector store, the embedding model, the generation model and
the document parsers -- is reached exclusively through the abstract base
classes in this package.  Concrete adapters implement these interfaces and
are injected at startup by ``docqa/main.py``, so tests can substitute
mocks and deployments can swap backends without touching the services.

CONCRETE PROVIDER MAP:
    Interface              →  Concrete implementations (in docqa/providers/)
    ─────────────────────────────────────────────────────────────────────
    IObjectStore           →  LocalObjectStore
    IFileRegistry          →  SQLiteFileRegistry
    IVectorStoreProvider   →  ChromaDBProvider
    IEmbeddingProvider     →  OpenAIEmbeddingProvider, NomicEmbeddingProvider
    ILLMProvider           →  AnthropicLLMProvider, OpenAILLMProvider,
                              OllamaLLMProvider
    ITextExtractor         →  PDFTextExtractor, DocxTextExtractor,
                              PlainTextExtractor
"""

from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.interfaces.file_registry import IFileRegistry
from docqa.interfaces.llm_provider import ILLMProvider
from docqa.interfaces.object_store import IObjectStore
from docqa.interfaces.text_extractor import ITextExtractor
from docqa.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IEmbeddingProvider",
    "IFileRegistry",
    "ILLMProvider",
    "IObjectStore",
    "ITextExtractor",
    "IVectorStoreProvider",
]
