"""Unit tests for the ChromaDB vector store provider.

Tests run against a real PersistentClient in a temp directory and cover
add_chunks, the existence probe, owner-scoped query, delete_by_file and the
static metadata helpers.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from docqa.providers.vector_store.chromadb_provider import ChromaDBProvider
from docqa.utils.errors import RAGError
from tests.conftest import _bag_of_words_vector, make_stored_chunk

_HASH_A = "a" * 64
_HASH_B = "b" * 64


@pytest.fixture()
def provider(tmp_path) -> ChromaDBProvider:
    return ChromaDBProvider(
        persist_directory=str(tmp_path / "chroma"),
        collection_name="test_collection",
    )


async def _add(provider: ChromaDBProvider, texts: list[str], file_hash: str, owner_id: str) -> None:
    chunks = [
        make_stored_chunk(content=t, file_hash=file_hash, owner_id=owner_id, sequence_id=i)
        for i, t in enumerate(texts)
    ]
    await provider.add_chunks(chunks, [_bag_of_words_vector(t) for t in texts])


class TestBasics:
    def test_get_provider_name(self, provider) -> None:
        assert provider.get_provider_name() == "chromadb"

    def test_is_available(self, provider) -> None:
        assert provider.is_available() is True

    def test_is_available_false_when_collection_broken(self, provider) -> None:
        provider._collection = MagicMock()
        provider._collection.count.side_effect = RuntimeError("gone")
        assert provider.is_available() is False


class TestAddChunks:
    @pytest.mark.asyncio
    async def test_length_mismatch_raises_value_error(self, provider) -> None:
        with pytest.raises(ValueError):
            await provider.add_chunks([make_stored_chunk()], [])

    @pytest.mark.asyncio
    async def test_empty_batch_is_noop(self, provider) -> None:
        assert await provider.add_chunks([], []) == 0

    @pytest.mark.asyncio
    async def test_upsert_by_chunk_id(self, provider) -> None:
        await _add(provider, ["first version"], _HASH_A, "alice")
        await _add(provider, ["second version"], _HASH_A, "alice")

        assert await provider.count_chunks(_HASH_A, "alice") == 1

    @pytest.mark.asyncio
    async def test_backend_failure_wrapped(self, provider) -> None:
        provider._collection = MagicMock()
        provider._collection.upsert.side_effect = RuntimeError("disk full")

        with pytest.raises(RAGError):
            await provider.add_chunks([make_stored_chunk()], [[0.1] * 64])


class TestProbe:
    @pytest.mark.asyncio
    async def test_has_chunks_is_scoped_to_owner(self, provider) -> None:
        await _add(provider, ["one", "two"], _HASH_A, "alice")

        assert await provider.has_chunks(_HASH_A, "alice") is True
        assert await provider.has_chunks(_HASH_A, "bob") is False
        assert await provider.has_chunks(_HASH_B, "alice") is False

    @pytest.mark.asyncio
    async def test_count_chunks(self, provider) -> None:
        await _add(provider, ["one", "two", "three"], _HASH_A, "alice")
        assert await provider.count_chunks(_HASH_A, "alice") == 3
        assert await provider.count_chunks(_HASH_A, "bob") == 0


class TestQuery:
    @pytest.mark.asyncio
    async def test_empty_collection_returns_empty(self, provider) -> None:
        assert await provider.query(_bag_of_words_vector("x"), owner_id="alice") == []

    @pytest.mark.asyncio
    async def test_only_owner_chunks_returned(self, provider) -> None:
        await _add(provider, ["refund policy thirty days"], _HASH_A, "alice")
        await _add(provider, ["refund policy thirty days exactly"], _HASH_A, "bob")

        results = await provider.query(_bag_of_words_vector("refund policy"), owner_id="alice", top_k=4)

        assert len(results) == 1
        assert results[0].chunk.metadata.owner_id == "alice"

    @pytest.mark.asyncio
    async def test_owner_without_chunks_gets_nothing(self, provider) -> None:
        await _add(provider, ["refund policy"], _HASH_A, "alice")
        assert await provider.query(_bag_of_words_vector("refund"), owner_id="mallory") == []

    @pytest.mark.asyncio
    async def test_results_ordered_and_metadata_restored(self, provider) -> None:
        await _add(
            provider,
            ["shipping takes two days", "refund window thirty days", "warranty one year"],
            _HASH_A,
            "alice",
        )

        results = await provider.query(_bag_of_words_vector("refund window"), owner_id="alice", top_k=3)

        assert results[0].chunk.content == "refund window thirty days"
        assert results[0].chunk.metadata.sequence_id == 1
        assert results[0].chunk.metadata.file_hash == _HASH_A
        scores = [r.similarity_score for r in results]
        assert scores == sorted(scores, reverse=True)
        assert all(0.0 <= s <= 1.0 for s in scores)

    @pytest.mark.asyncio
    async def test_top_k_limits_results(self, provider) -> None:
        await _add(provider, [f"chunk number {i}" for i in range(6)], _HASH_A, "alice")

        results = await provider.query(_bag_of_words_vector("chunk"), owner_id="alice", top_k=2)
        assert len(results) == 2


class TestDeleteByFile:
    @pytest.mark.asyncio
    async def test_deletes_only_the_owners_copy(self, provider) -> None:
        await _add(provider, ["one", "two"], _HASH_A, "alice")
        await _add(provider, ["one", "two"], _HASH_A, "bob")
        await _add(provider, ["other"], _HASH_B, "alice")

        deleted = await provider.delete_by_file(_HASH_A, "alice")

        assert deleted == 2
        assert await provider.has_chunks(_HASH_A, "alice") is False
        assert await provider.count_chunks(_HASH_A, "bob") == 2
        assert await provider.count_chunks(_HASH_B, "alice") == 1

    @pytest.mark.asyncio
    async def test_delete_missing_returns_zero(self, provider) -> None:
        assert await provider.delete_by_file(_HASH_A, "alice") == 0


class TestStaticHelpers:
    def test_metadata_round_trip(self) -> None:
        chunk = make_stored_chunk(content="text", sequence_id=5)
        meta = ChromaDBProvider._chunk_to_metadata(chunk)

        assert meta == {"file_hash": "f" * 64, "owner_id": "alice", "sequence_id": 5}
        assert ChromaDBProvider._metadata_to_chunk(chunk.chunk_id, meta, "text") == chunk

    def test_file_filter(self) -> None:
        assert ChromaDBProvider._file_filter("h", "o") == {
            "$and": [{"file_hash": "h"}, {"owner_id": "o"}]
        }
