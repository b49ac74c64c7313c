"""Shared pytest fixtures for the docqa test suite."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.interfaces.file_registry import IFileRegistry
from docqa.interfaces.llm_provider import ILLMProvider
from docqa.interfaces.object_store import IObjectStore
from docqa.interfaces.vector_store_provider import IVectorStoreProvider
from docqa.models.rag import ChunkMetadata, RetrievedChunk, StoredChunk
from docqa.providers.embedding.handle import EmbeddingHandle
from docqa.providers.registry.sqlite_file_registry import SQLiteFileRegistry
from docqa.providers.storage.local_object_store import LocalObjectStore

# ---------------------------------------------------------------------------
# Deterministic embeddings
# ---------------------------------------------------------------------------

_EMBEDDING_DIM = 64
_TOKEN_RE = re.compile(r"\w+")


def _bag_of_words_vector(text: str, dim: int = _EMBEDDING_DIM) -> list[float]:
    """Hash each lowercase word of *text* into one of *dim* buckets.

    Texts sharing words get a positive cosine similarity, so retrieval
    ordering in tests follows word overlap.  Deterministic across runs.
    """
    values = [0.0] * dim
    for token in _TOKEN_RE.findall(text.lower()):
        bucket = int.from_bytes(hashlib.sha256(token.encode("utf-8")).digest()[:4], "little")
        values[bucket % dim] += 1.0
    magnitude = sum(v * v for v in values) ** 0.5
    if magnitude == 0:
        values[0] = 1.0
        return values
    return [v / magnitude for v in values]


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests."""

    def __init__(self) -> None:
        self.embed_calls: list[list[str]] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.embed_calls.append(list(texts))
        return [_bag_of_words_vector(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        return _bag_of_words_vector(text)

    def get_dimension(self) -> int:
        return _EMBEDDING_DIM

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True


def make_stored_chunk(
    content: str = "chunk text",
    file_hash: str = "f" * 64,
    owner_id: str = "alice",
    sequence_id: int = 0,
) -> StoredChunk:
    return StoredChunk(
        chunk_id=StoredChunk.make_id(file_hash, owner_id, sequence_id),
        content=content,
        metadata=ChunkMetadata(file_hash=file_hash, owner_id=owner_id, sequence_id=sequence_id),
    )


def make_retrieved(
    content: str = "chunk text",
    score: float = 0.5,
    owner_id: str = "alice",
    sequence_id: int = 0,
) -> RetrievedChunk:
    return RetrievedChunk(
        chunk=make_stored_chunk(content=content, owner_id=owner_id, sequence_id=sequence_id),
        similarity_score=score,
    )


# ---------------------------------------------------------------------------
# Mock provider fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_embedding_provider() -> MockEmbeddingProvider:
    """IEmbeddingProvider returning deterministic bag-of-words vectors."""
    return MockEmbeddingProvider()


@pytest.fixture
def embedding_handle(mock_embedding_provider: MockEmbeddingProvider) -> EmbeddingHandle:
    return EmbeddingHandle(lambda: mock_embedding_provider)


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider.

    Default complete() returns a plain answer.  Override with
    ``mock_llm_provider.complete.return_value = "..."`` or
    ``mock_llm_provider.complete.side_effect = [...]``.
    """
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.complete = AsyncMock(return_value="The refund window is 30 days.")
    return mock


@pytest.fixture
def mock_vector_store() -> IVectorStoreProvider:
    mock = MagicMock(spec=IVectorStoreProvider)
    mock.get_provider_name.return_value = "mock-vector-store"
    mock.is_available.return_value = True
    mock.add_chunks = AsyncMock(side_effect=lambda chunks, embeddings: len(chunks))
    mock.has_chunks = AsyncMock(return_value=False)
    mock.count_chunks = AsyncMock(return_value=0)
    mock.query = AsyncMock(return_value=[])
    mock.delete_by_file = AsyncMock(return_value=0)
    return mock


@pytest.fixture
def mock_object_store() -> IObjectStore:
    mock = MagicMock(spec=IObjectStore)
    mock.get_provider_name.return_value = "mock-objects"
    mock.put = AsyncMock(return_value=None)
    mock.get = AsyncMock()
    mock.delete = AsyncMock(return_value=1)
    mock.exists = AsyncMock(return_value=False)
    return mock


@pytest.fixture
def mock_file_registry() -> IFileRegistry:
    mock = MagicMock(spec=IFileRegistry)
    mock.get_provider_name.return_value = "mock-registry"
    mock.initialize = AsyncMock(return_value=None)
    mock.insert = AsyncMock()
    mock.get = AsyncMock(return_value=None)
    mock.count_by_owner = AsyncMock(return_value=0)
    mock.list_by_owner = AsyncMock(return_value=[])
    mock.delete = AsyncMock(return_value=None)
    return mock


# ---------------------------------------------------------------------------
# Real local providers on temporary storage
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def file_registry(tmp_path: Path) -> SQLiteFileRegistry:
    """Initialised SQLiteFileRegistry on a temp database."""
    registry = SQLiteFileRegistry(db_path=tmp_path / "files.db")
    await registry.initialize()
    return registry


@pytest.fixture
def object_store(tmp_path: Path) -> LocalObjectStore:
    return LocalObjectStore(root_dir=tmp_path / "objects")


@pytest.fixture
def sample_document_text() -> str:
    """Multi-paragraph policy text for chunker and pipeline tests."""
    return (
        "Refund policy.\n\n"
        "Customers may request a refund within 30 days of purchase. Refunds are "
        "issued to the original payment method. Dr. Jones approves exceptions.\n\n"
        "Shipping policy.\n\n"
        "Orders ship within two business days. Express shipping is available for "
        "an additional fee. International orders may take up to three weeks.\n\n"
        "Warranty.\n\n"
        "All hardware carries a one-year limited warranty covering manufacturing "
        "defects. Accidental damage is not covered."
    )
