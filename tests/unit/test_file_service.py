"""Unit tests for FileService listing and the delete cascade."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from docqa.models.files import UploadedFile
from docqa.services.file_service import FileService
from docqa.services.hashing import object_key
from docqa.utils.errors import BadRequestError, RAGError


def _row(file_hash: str = "h" * 64, owner_id: str = "alice") -> UploadedFile:
    return UploadedFile(
        id=1,
        file_name="a.txt",
        file_hash=file_hash,
        owner_id=owner_id,
        content_type="text/plain",
        size_bytes=3,
        created_at=datetime.now(tz=timezone.utc),
    )


class TestListFiles:
    @pytest.mark.asyncio
    async def test_lists_only_callers_files(self, file_registry, mock_vector_store, mock_object_store) -> None:
        await file_registry.insert("a.txt", "a" * 64, "alice", "text/plain", 1)
        await file_registry.insert("b.txt", "b" * 64, "bob", "text/plain", 1)
        service = FileService(file_registry, mock_vector_store, mock_object_store)

        files = await service.list_files("alice")

        assert [f.file_name for f in files] == ["a.txt"]

    @pytest.mark.asyncio
    async def test_blank_owner_rejected(self, mock_file_registry, mock_vector_store, mock_object_store) -> None:
        service = FileService(mock_file_registry, mock_vector_store, mock_object_store)
        with pytest.raises(BadRequestError):
            await service.list_files("  ")


class TestDeleteFile:
    @pytest.mark.asyncio
    async def test_deletes_all_three_stores(self, mock_file_registry, mock_vector_store, mock_object_store) -> None:
        mock_file_registry.delete.return_value = _row()
        mock_vector_store.delete_by_file.return_value = 3
        service = FileService(mock_file_registry, mock_vector_store, mock_object_store)

        result = await service.delete_file("h" * 64, "alice")

        assert result.file is not None
        assert result.chunks_deleted == 3
        assert result.object_deleted is True
        assert result.failed_steps == []
        mock_vector_store.delete_by_file.assert_awaited_once_with("h" * 64, "alice")
        mock_object_store.delete.assert_awaited_once_with([object_key("h" * 64, "alice")])

    @pytest.mark.asyncio
    async def test_missing_file_is_not_an_error(
        self, mock_file_registry, mock_vector_store, mock_object_store
    ) -> None:
        mock_object_store.delete.return_value = 0
        service = FileService(mock_file_registry, mock_vector_store, mock_object_store)

        result = await service.delete_file("nope", "alice")

        assert result.file is None
        assert result.object_deleted is False
        assert result.failed_steps == []

    @pytest.mark.asyncio
    async def test_failing_step_does_not_stop_the_others(
        self, mock_file_registry, mock_vector_store, mock_object_store
    ) -> None:
        mock_file_registry.delete.return_value = _row()
        mock_vector_store.delete_by_file.side_effect = RAGError("chroma down")
        service = FileService(mock_file_registry, mock_vector_store, mock_object_store)

        result = await service.delete_file("h" * 64, "alice")

        assert result.failed_steps == ["chunks"]
        assert result.file is not None
        mock_object_store.delete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_every_step_failing_is_reported(
        self, mock_file_registry, mock_vector_store, mock_object_store
    ) -> None:
        mock_file_registry.delete.side_effect = OSError("locked")
        mock_vector_store.delete_by_file.side_effect = RAGError("down")
        mock_object_store.delete.side_effect = OSError("read-only")
        service = FileService(mock_file_registry, mock_vector_store, mock_object_store)

        result = await service.delete_file("h" * 64, "alice")

        assert result.failed_steps == ["registry", "chunks", "object"]

    @pytest.mark.asyncio
    async def test_other_owners_copy_survives(self, file_registry, object_store, mock_vector_store) -> None:
        digest = "d" * 64
        for owner in ("alice", "bob"):
            await file_registry.insert("same.txt", digest, owner, "text/plain", 4)
            await object_store.put(object_key(digest, owner), b"same")
        service = FileService(file_registry, mock_vector_store, object_store)

        await service.delete_file(digest, "alice")

        assert await file_registry.get(digest, "alice") is None
        assert await file_registry.get(digest, "bob") is not None
        assert not await object_store.exists(object_key(digest, "alice"))
        assert await object_store.exists(object_key(digest, "bob"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("file_hash", "owner"), [("", "alice"), ("h", ""), (None, "alice")])
    async def test_missing_fields(
        self, mock_file_registry, mock_vector_store, mock_object_store, file_hash, owner
    ) -> None:
        service = FileService(mock_file_registry, mock_vector_store, mock_object_store)
        with pytest.raises(BadRequestError):
            await service.delete_file(file_hash, owner)
