"""Unit tests for Settings validation and the YAML config loader."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from docqa.config.loader import load_config
from docqa.config.settings import Settings


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.max_upload_bytes == 4 * 1024 * 1024
        assert settings.max_files_per_owner == 5
        assert settings.chunk_size == 1000
        assert settings.chunk_overlap == 200
        assert settings.ingest_batch_size == 30
        assert settings.retrieval_top_k == 4
        assert settings.llm_max_retries == 3
        assert ".pdf" in settings.allowed_extensions

    def test_env_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("MAX_FILES_PER_OWNER", "9")
        monkeypatch.setenv("ALLOWED_EXTENSIONS", '[".txt"]')

        settings = Settings(_env_file=None)

        assert settings.max_files_per_owner == 9
        assert settings.allowed_extensions == [".txt"]

    def test_overlap_must_be_below_chunk_size(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, chunk_size=100, chunk_overlap=100)

    def test_available_llm_providers(self) -> None:
        settings = Settings(_env_file=None, anthropic_api_key="a", openai_api_key="", ollama_base_url="")
        assert settings.get_available_llm_providers() == ["anthropic"]


class TestLoadConfig:
    def test_yaml_keys_survive_merge(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "app:\n  cors_origins:\n    - https://docs.example.com\n"
            "retrieval:\n  context_separator: \"\\n---\\n\"\n"
        )

        config = load_config(str(path), settings=Settings(_env_file=None, app_port=9000))

        assert config["app"]["cors_origins"] == ["https://docs.example.com"]
        assert config["app"]["port"] == 9000
        assert config["retrieval"]["context_separator"] == "\n---\n"

    def test_missing_file_uses_settings_only(self, tmp_path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=Settings(_env_file=None))

        assert config["upload"]["max_files_per_owner"] == 5
        assert config["ingestion"]["chunk_size"] == 1000
