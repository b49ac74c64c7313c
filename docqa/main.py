"""docqa FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, and configures
structured logging.

Also exposes :func:`build_services` so the CLI can drive the same services
without starting the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from docqa import __version__
from docqa.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    install_exception_handlers,
)
from docqa.api.routes import router as api_router
from docqa.config.loader import load_config
from docqa.config.settings import Settings
from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.interfaces.llm_provider import ILLMProvider
from docqa.providers.embedding.handle import EmbeddingHandle
from docqa.providers.llm.anthropic_provider import AnthropicLLMProvider
from docqa.providers.llm.ollama_provider import OllamaLLMProvider
from docqa.providers.llm.openai_provider import OpenAILLMProvider
from docqa.providers.registry.sqlite_file_registry import SQLiteFileRegistry
from docqa.providers.storage.local_object_store import LocalObjectStore
from docqa.providers.vector_store.chromadb_provider import ChromaDBProvider
from docqa.services.answer_composer import AnswerComposer
from docqa.services.file_service import FileService
from docqa.services.ingestion.chunker import TextChunker
from docqa.services.ingestion.extractors import ExtractorRegistry
from docqa.services.ingestion.ingestion_service import IngestionService
from docqa.services.ingestion_gate import IngestionGate
from docqa.services.retriever import Retriever
from docqa.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Select the first available LLM provider based on configured API keys.

    Priority order: Anthropic -> OpenAI -> Ollama (always constructed).
    """
    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    return OllamaLLMProvider(settings=app_settings)


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider | None:
    """Select the embedding provider from configuration alone.

    Priority: OpenAI/OpenAI-compatible (if API key set) -> Nomic/Ollama (if
    a base URL is set).  Returns ``None`` if neither is configured.  Makes
    no network calls: :class:`EmbeddingHandle` runs it inside request
    handlers, and an unreachable backend fails on the first embed call.
    """
    if app_settings.openai_api_key:
        from docqa.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        return OpenAIEmbeddingProvider(settings=app_settings)

    from docqa.providers.embedding.nomic_embedding_provider import (
        NomicEmbeddingProvider,
    )

    if not app_settings.ollama_base_url:
        return None
    provider = NomicEmbeddingProvider(settings=app_settings)
    return provider if provider.is_available() else None


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def _build_all(
    app_settings: Settings,
    app_config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    The embedding provider is not built here: the shared
    :class:`EmbeddingHandle` builds it on first use, so the app can start
    (and accept uploads) before an embedding backend is reachable.
    """
    app_config = app_config if app_config is not None else config
    context_separator = app_config.get("retrieval", {}).get("context_separator", "\n\n")

    # -- Storage --
    object_store = LocalObjectStore(root_dir=app_settings.object_store_dir)
    file_registry = SQLiteFileRegistry(db_path=app_settings.file_registry_db_path)
    vector_store = ChromaDBProvider(
        persist_directory=app_settings.chromadb_persist_dir,
        collection_name=app_settings.chromadb_collection,
    )

    # -- Models --
    llm = _build_llm_provider(app_settings)
    embedding_handle = EmbeddingHandle(lambda: _build_embedding_provider(app_settings))

    # -- Services --
    ingestion_gate = IngestionGate(
        object_store=object_store,
        file_registry=file_registry,
        max_upload_bytes=app_settings.max_upload_bytes,
        allowed_extensions=app_settings.allowed_extensions,
        max_files_per_owner=app_settings.max_files_per_owner,
    )
    ingestion_service = IngestionService(
        chunker=TextChunker(
            chunk_size=app_settings.chunk_size,
            overlap=app_settings.chunk_overlap,
        ),
        embedding_handle=embedding_handle,
        vector_store=vector_store,
        object_store=object_store,
        extractors=ExtractorRegistry.default(),
        batch_size=app_settings.ingest_batch_size,
    )
    retriever = Retriever(
        embedding_handle=embedding_handle,
        vector_store=vector_store,
        top_k=app_settings.retrieval_top_k,
    )
    answer_composer = AnswerComposer(
        llm=llm,
        retriever=retriever,
        file_registry=file_registry,
        top_k=app_settings.retrieval_top_k,
        timeout_seconds=app_settings.llm_timeout_seconds,
        max_retries=app_settings.llm_max_retries,
        temperature=app_settings.llm_temperature,
        max_tokens=app_settings.llm_max_tokens,
        context_separator=context_separator,
    )
    file_service = FileService(
        file_registry=file_registry,
        vector_store=vector_store,
        object_store=object_store,
    )

    # -- Provider registry for /health --
    provider_registry: dict[str, Any] = {
        "llm": llm.is_available(),
        "llm_provider": llm.get_provider_name(),
        "object_store": object_store.get_provider_name(),
        "file_registry": file_registry.get_provider_name(),
    }

    return {
        "object_store": object_store,
        "file_registry": file_registry,
        "vector_store": vector_store,
        "embedding_handle": embedding_handle,
        "llm": llm,
        "ingestion_gate": ingestion_gate,
        "ingestion_service": ingestion_service,
        "retriever": retriever,
        "answer_composer": answer_composer,
        "file_service": file_service,
        "provider_registry": provider_registry,
        "primary_llm_name": llm.get_provider_name(),
    }


async def build_services(custom_settings: Settings | None = None) -> dict[str, Any]:
    """Build and initialise every component for use outside the web server.

    Used by the CLI.  Unlike :func:`_build_all` alone this also creates the
    file registry table, which the web app does in its lifespan.
    """
    components = _build_all(custom_settings or settings)
    await components["file_registry"].initialize()
    return components


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup."""
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["file_registry"].initialize()

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        primary_llm=components["primary_llm_name"],
        vector_store=components["vector_store"].get_provider_name(),
    )

    yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="docqa API",
        version=__version__,
        description=(
            "Upload documents, ingest them into a per-owner vector index, and "
            "ask questions answered only from your own files."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=config.get("app", {}).get("cors_origins"))
    install_exception_handlers(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "docqa.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
