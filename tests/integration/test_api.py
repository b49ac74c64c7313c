"""Integration tests for the REST API using TestClient.

The app is wired with real local storage (object store, SQLite registry,
ChromaDB in a temp directory), the deterministic mock embedding provider
and a mock LLM, so the full upload -> ingest -> query -> delete flow runs
without network access.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from docqa.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    install_exception_handlers,
)
from docqa.api.routes import router as api_router
from docqa.providers.registry.sqlite_file_registry import SQLiteFileRegistry
from docqa.providers.storage.local_object_store import LocalObjectStore
from docqa.providers.vector_store.chromadb_provider import ChromaDBProvider
from docqa.services.answer_composer import AnswerComposer
from docqa.services.file_service import FileService
from docqa.services.ingestion.chunker import TextChunker
from docqa.services.ingestion.ingestion_service import IngestionService
from docqa.services.ingestion_gate import IngestionGate
from docqa.services.retriever import Retriever
from docqa.utils.errors import LLMError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_POLICY = (
    "Refund policy. Customers may request a refund within 30 days of purchase.\n\n"
    "Shipping policy. Orders ship within two business days."
)


def _create_test_app(tmp_path, embedding_handle, llm, max_upload_bytes: int = 4096) -> FastAPI:
    """Create a FastAPI app whose state holds real local providers."""
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    install_exception_handlers(app)
    app.include_router(api_router)

    object_store = LocalObjectStore(root_dir=tmp_path / "objects")
    file_registry = SQLiteFileRegistry(db_path=tmp_path / "files.db")
    asyncio.run(file_registry.initialize())
    vector_store = ChromaDBProvider(persist_directory=str(tmp_path / "chroma"))
    retriever = Retriever(embedding_handle, vector_store, top_k=4)

    app.state.ingestion_gate = IngestionGate(
        object_store=object_store,
        file_registry=file_registry,
        max_upload_bytes=max_upload_bytes,
        max_files_per_owner=2,
    )
    app.state.ingestion_service = IngestionService(
        chunker=TextChunker(),
        embedding_handle=embedding_handle,
        vector_store=vector_store,
        object_store=object_store,
    )
    app.state.answer_composer = AnswerComposer(
        llm=llm,
        retriever=retriever,
        file_registry=file_registry,
        max_retries=2,
        retry_backoff=0,
    )
    app.state.file_service = FileService(file_registry, vector_store, object_store)
    app.state.vector_store = vector_store
    app.state.embedding_handle = embedding_handle
    app.state.provider_registry = {"llm": True, "llm_provider": "mock-llm"}
    return app


def _upload(client: TestClient, data: bytes, name: str = "policy.txt", owner: str = "alice"):
    return client.post(
        "/api/v1/files",
        files={"file": (name, data, "text/plain")},
        data={"owner_id": owner},
    )


@pytest.fixture()
def client(tmp_path, embedding_handle, mock_llm_provider) -> TestClient:
    return TestClient(_create_test_app(tmp_path, embedding_handle, mock_llm_provider))


# ---------------------------------------------------------------------------
# Full flow
# ---------------------------------------------------------------------------


class TestDocumentLifecycle:
    def test_upload_ingest_query_list_delete(self, client: TestClient) -> None:
        upload = _upload(client, _POLICY.encode())
        assert upload.status_code == 200
        file_hash = upload.json()["file_hash"]
        assert upload.json()["duplicate"] is False

        ingest = client.post(f"/api/v1/files/{file_hash}/ingest", json={"owner_id": "alice"})
        assert ingest.status_code == 200
        assert ingest.json()["chunks_processed"] == 1
        assert ingest.json()["existing"] is False

        query = client.post(
            "/api/v1/query",
            json={"owner_id": "alice", "question": "What is the refund window?"},
        )
        assert query.status_code == 200
        body = query.json()
        assert body["answer"] == "The refund window is 30 days."
        assert body["context"][0]["content"] == _POLICY
        assert body["context"][0]["metadata"] == {
            "file_hash": file_hash,
            "owner_id": "alice",
            "sequence_id": 0,
        }

        listing = client.get("/api/v1/files", params={"owner_id": "alice"})
        assert [f["file_name"] for f in listing.json()["files"]] == ["policy.txt"]

        deleted = client.delete(f"/api/v1/files/{file_hash}", params={"owner_id": "alice"})
        assert deleted.status_code == 200
        assert deleted.json()["chunks_deleted"] == 1
        assert deleted.json()["object_deleted"] is True
        assert deleted.json()["failed_steps"] == []

        assert client.get("/api/v1/files", params={"owner_id": "alice"}).json()["files"] == []

    def test_long_document_yields_three_chunks(self, client: TestClient) -> None:
        file_hash = _upload(client, b"x" * 2600).json()["file_hash"]

        ingest = client.post(f"/api/v1/files/{file_hash}/ingest", json={"owner_id": "alice"})

        assert ingest.json()["chunks_processed"] == 3

    def test_reupload_and_reingest_are_noops(self, client: TestClient) -> None:
        first = _upload(client, _POLICY.encode()).json()
        second = _upload(client, _POLICY.encode(), name="copy.txt").json()
        assert second["duplicate"] is True
        assert second["file_id"] == first["file_id"]

        url = f"/api/v1/files/{first['file_hash']}/ingest"
        client.post(url, json={"owner_id": "alice"})
        again = client.post(url, json={"owner_id": "alice"})

        assert again.json()["existing"] is True
        assert again.json()["chunks_processed"] == 1


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrorStatuses:
    def test_missing_owner_is_400(self, client: TestClient) -> None:
        response = client.post("/api/v1/files", files={"file": ("a.txt", b"hi", "text/plain")})
        assert response.status_code == 400

    def test_missing_file_is_400(self, client: TestClient) -> None:
        response = client.post("/api/v1/files", data={"owner_id": "alice"})
        assert response.status_code == 400

    def test_empty_file_is_400(self, client: TestClient) -> None:
        assert _upload(client, b"").status_code == 400

    def test_oversized_upload_is_413(self, client: TestClient) -> None:
        response = _upload(client, b"x" * 5000)
        assert response.status_code == 413
        assert response.json()["error"] == "PayloadTooLargeError"

    def test_bad_extension_is_415(self, client: TestClient) -> None:
        assert _upload(client, b"MZ", name="tool.exe").status_code == 415

    def test_quota_is_429(self, client: TestClient) -> None:
        _upload(client, b"one")
        _upload(client, b"two")
        assert _upload(client, b"three").status_code == 429

    def test_query_before_upload_is_404(self, client: TestClient) -> None:
        response = client.post("/api/v1/query", json={"owner_id": "nobody", "question": "hi?"})

        assert response.status_code == 404
        assert response.json()["detail"] == "No file found, please upload a file first"

    def test_blank_question_is_400(self, client: TestClient) -> None:
        response = client.post("/api/v1/query", json={"owner_id": "alice", "question": ""})
        assert response.status_code == 400

    def test_ingest_unknown_file_is_404(self, client: TestClient) -> None:
        response = client.post("/api/v1/files/" + "0" * 64 + "/ingest", json={"owner_id": "alice"})
        assert response.status_code == 404

    def test_list_without_owner_is_400(self, client: TestClient) -> None:
        assert client.get("/api/v1/files").status_code == 400

    def test_generation_failure_is_502(self, client: TestClient, mock_llm_provider) -> None:
        mock_llm_provider.complete = AsyncMock(side_effect=LLMError("down"))
        file_hash = _upload(client, _POLICY.encode()).json()["file_hash"]
        client.post(f"/api/v1/files/{file_hash}/ingest", json={"owner_id": "alice"})

        response = client.post("/api/v1/query", json={"owner_id": "alice", "question": "refund?"})

        assert response.status_code == 502
        assert response.json()["error"] == "GenerationFailedError"


class TestHealth:
    def test_health_reports_providers(self, client: TestClient) -> None:
        body = client.get("/api/v1/health").json()

        assert body["status"] == "healthy"
        assert body["providers"]["vector_store"] is True
        assert body["providers"]["embedding_initialized"] is False
