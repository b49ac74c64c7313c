"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from two sources, in priority order:
#
#   1. **Environment variables** -- e.g. OPENAI_API_KEY=sk-abc123
#   2. **.env file** -- key=value lines in the project root
#
# Field ``max_upload_bytes`` maps to env var ``MAX_UPLOAD_BYTES``; list
# fields such as ``allowed_extensions`` take a JSON array
# (ALLOWED_EXTENSIONS='[".pdf", ".txt"]').
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docqa application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === LLM / Embedding Providers ===
    # Empty string = "not configured"; main.py skips providers with empty keys.
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible hosts (Groq, TogetherAI, ...)
    openai_text_model: str = ""
    openai_embedding_model: str = ""
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    ollama_base_url: str = "http://localhost:11434"
    ollama_text_model: str = "llama3.1"
    # Changing the embedding model invalidates every stored chunk vector.
    ollama_embedding_model: str = "nomic-embed-text"

    # === Storage ===
    object_store_dir: str = "./data/objects"
    file_registry_db_path: str = "./data/files.db"
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "docqa_chunks"

    # === Upload policy ===
    max_upload_bytes: int = Field(default=4 * 1024 * 1024, gt=0)
    allowed_extensions: list[str] = [
        ".pdf",
        ".txt",
        ".doc",
        ".docx",
        ".xls",
        ".xlsx",
        ".ppt",
        ".pptx",
    ]
    max_files_per_owner: int = Field(default=5, ge=1)

    # === Ingestion ===
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    ingest_batch_size: int = Field(default=30, gt=0)

    # === Query / generation ===
    retrieval_top_k: int = Field(default=4, gt=0)
    llm_timeout_seconds: float = Field(default=10.0, gt=0)
    llm_max_retries: int = Field(default=3, ge=1)
    llm_temperature: float = 0.0
    llm_max_tokens: int = 2000

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_overlap(self) -> "Settings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )
        return self

    def get_available_llm_providers(self) -> list[str]:
        """Return LLM provider names that have credentials or an endpoint configured."""
        providers: list[str] = []
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.openai_api_key:
            providers.append("openai")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers
