"""Unit tests for factory functions in docqa/main.py.

Covers provider selection, document store and blob store selection, the
full component assembly and the create_app factory.  SDK clients are
patched so no real network calls or API keys are required.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi import FastAPI

from docqa.config.settings import Settings
from docqa.providers.answer import AnthropicAnswerProvider, GeminiAnswerProvider, OpenAIAnswerProvider
from docqa.providers.blob import LocalBlobStore, S3BlobStore
from docqa.providers.embedding import GeminiEmbeddingProvider, OpenAIEmbeddingProvider
from docqa.providers.store import PgVectorDocumentStore, SQLiteDocumentStore
from docqa.utils.errors import ConfigurationError


# ======================================================================
# Shared helpers
# ======================================================================


def _settings(**overrides) -> Settings:  # noqa: ANN003
    """Build a Settings instance with every key blank unless overridden."""
    defaults = {
        "openai_api_key": "",
        "anthropic_api_key": "",
        "gemini_api_key": "",
        "app_env": "test",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


# ======================================================================
# _build_embedding_provider
# ======================================================================


class TestBuildEmbeddingProvider:
    def test_openai(self) -> None:
        from docqa.main import _build_embedding_provider

        with patch("docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"):
            provider = _build_embedding_provider(_settings(openai_api_key="sk-test"))
        assert isinstance(provider, OpenAIEmbeddingProvider)

    def test_gemini_requires_matching_dimension(self) -> None:
        from docqa.main import _build_embedding_provider

        with patch("docqa.providers.embedding.gemini_embedding_provider.genai"):
            with pytest.raises(ConfigurationError, match="EMBEDDING_DIMENSION"):
                _build_embedding_provider(
                    _settings(embedding_provider="gemini", gemini_api_key="g")
                )
            provider = _build_embedding_provider(
                _settings(embedding_provider="gemini", gemini_api_key="g", embedding_dimension=768)
            )
        assert isinstance(provider, GeminiEmbeddingProvider)

    def test_missing_key(self) -> None:
        from docqa.main import _build_embedding_provider

        with patch("docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"):
            with pytest.raises(ConfigurationError, match="API key"):
                _build_embedding_provider(_settings())


# ======================================================================
# _build_answer_provider
# ======================================================================


class TestBuildAnswerProvider:
    def test_anthropic_default(self) -> None:
        from docqa.main import _build_answer_provider

        with patch("docqa.providers.answer.anthropic_answer_provider.anthropic.AsyncAnthropic"):
            provider = _build_answer_provider(_settings(anthropic_api_key="a"))
        assert isinstance(provider, AnthropicAnswerProvider)

    def test_openai(self) -> None:
        from docqa.main import _build_answer_provider

        with patch("docqa.providers.answer.openai_answer_provider.openai.AsyncOpenAI"):
            provider = _build_answer_provider(
                _settings(answer_provider="openai", openai_api_key="k")
            )
        assert isinstance(provider, OpenAIAnswerProvider)

    def test_gemini(self) -> None:
        from docqa.main import _build_answer_provider

        with patch("docqa.providers.answer.gemini_answer_provider.genai"):
            provider = _build_answer_provider(
                _settings(answer_provider="gemini", gemini_api_key="g")
            )
        assert isinstance(provider, GeminiAnswerProvider)

    def test_selected_provider_without_key(self) -> None:
        from docqa.main import _build_answer_provider

        # An OpenAI key does not rescue an Anthropic selection.
        with patch("docqa.providers.answer.anthropic_answer_provider.anthropic.AsyncAnthropic"):
            with pytest.raises(ConfigurationError):
                _build_answer_provider(_settings(openai_api_key="k"))


# ======================================================================
# Stores
# ======================================================================


class TestBuildStores:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("sqlite:///data/docqa.db", "data/docqa.db"),
            ("sqlite:////tmp/abs.db", "/tmp/abs.db"),
            ("sqlite+aiosqlite:///x.db", "x.db"),
            ("plain/path.db", "plain/path.db"),
        ],
    )
    def test_sqlite_path(self, url: str, expected: str) -> None:
        from docqa.main import _sqlite_path

        assert _sqlite_path(url) == expected

    def test_sqlite_store(self, tmp_path: Path) -> None:
        from docqa.main import _build_document_store

        store = _build_document_store(_settings(database_url=f"sqlite:///{tmp_path}/x.db"))
        assert isinstance(store, SQLiteDocumentStore)

    def test_pgvector_store(self) -> None:
        from docqa.main import _build_document_store

        store = _build_document_store(
            _settings(database_url="postgresql://user:pw@localhost:5432/docqa")
        )
        assert isinstance(store, PgVectorDocumentStore)
        assert store.get_provider_name() == "pgvector"

    def test_unsupported_scheme(self) -> None:
        from docqa.main import _build_document_store

        with pytest.raises(ConfigurationError):
            _build_document_store(_settings(database_url="mysql://localhost/db"))

    def test_blob_backends(self, tmp_path: Path) -> None:
        from docqa.main import _build_blob_store

        assert isinstance(_build_blob_store(_settings(local_blob_dir=str(tmp_path))), LocalBlobStore)
        with patch("docqa.providers.blob.s3_blob_store.boto3.client"):
            store = _build_blob_store(_settings(blob_backend="s3", s3_bucket_name="bucket"))
        assert isinstance(store, S3BlobStore)


# ======================================================================
# _build_all / create_app
# ======================================================================


class TestAssembly:
    def test_build_all_components(self, tmp_path: Path) -> None:
        from docqa.main import _build_all

        settings = _settings(
            openai_api_key="k",
            anthropic_api_key="a",
            database_url=f"sqlite:///{tmp_path}/docqa.db",
            local_blob_dir=str(tmp_path / "blobs"),
        )
        with (
            patch("docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"),
            patch("docqa.providers.answer.anthropic_answer_provider.anthropic.AsyncAnthropic"),
        ):
            components = _build_all(settings)

        assert set(components) == {
            "http_client",
            "embedding_provider",
            "answer_provider",
            "document_store",
            "blob_store",
            "ingestion_service",
            "job_queue",
            "document_service",
            "qa_service",
        }

    def test_create_app_registers_routes(self) -> None:
        from docqa.main import create_app

        app = create_app(_settings())
        assert isinstance(app, FastAPI)
        paths = {getattr(route, "path", None) for route in app.routes}
        assert "/api/upload" in paths
        assert "/api/ask-question" in paths
        assert "/api/health" in paths
