"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from agent_knowledge.core.config import Settings


def test_yaml_sections_map_to_fields(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AGK_EMBEDDING_BACKEND")
    monkeypatch.delenv("AGK_EMBEDDING_DIM")
    config = tmp_path / "config.yaml"
    config.write_text(
        "embeddings:\n"
        "  model: text-embedding-3-large\n"
        "  dim: 3072\n"
        "chunking:\n"
        "  chunk_size: 1000\n"
        "  chunk_overlap: 100\n"
        "retrieval:\n"
        "  tables: [website, documentation, faq]\n",
        encoding="utf-8",
    )
    settings = Settings.from_yaml(config)
    assert settings.embedding_model == "text-embedding-3-large"
    assert settings.embedding_dim == 3072
    assert (settings.chunk_size, settings.chunk_overlap, settings.min_chunk_size) == (1000, 100, 100)
    assert settings.tables == ["website", "documentation", "faq"]
    assert settings.embedding_backend == "openai"


def test_env_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("retrieval:\n  top_k: 3\n", encoding="utf-8")
    monkeypatch.setenv("AGK_CONFIG", str(config))
    monkeypatch.setenv("AGK_TOP_K", "7")
    monkeypatch.setenv("AGK_TABLES", "website, docs")
    settings = Settings.from_yaml()
    assert settings.top_k == 7
    assert settings.tables == ["website", "docs"]
    assert settings.db_path == tmp_path / "knowledge.db"


def test_api_key_only_comes_from_provider_variable(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("openai_api_key: from-file\n", encoding="utf-8")
    assert Settings.from_yaml(config).openai_api_key is None
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    assert Settings.from_yaml(config).openai_api_key == "sk-env"


def test_invalid_chunking_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(chunk_size=200, chunk_overlap=200)


def test_unknown_embedding_backend_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(embedding_backend="word2vec")
