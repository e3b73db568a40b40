"""Unit tests for the OpenAI and Gemini embedding providers.

SDK clients are mocked; no network calls are made.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest
from google.api_core import exceptions as google_exceptions

from docqa.config.settings import Settings
from docqa.providers.embedding.gemini_embedding_provider import GeminiEmbeddingProvider
from docqa.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docqa.utils.errors import ProviderError


def _settings(**overrides) -> Settings:  # noqa: ANN003
    return Settings(_env_file=None, **overrides)


def _embedding_response(vectors: list[list[float]], order: list[int] | None = None) -> MagicMock:
    order = order if order is not None else list(range(len(vectors)))
    data = []
    for i in order:
        item = MagicMock()
        item.index = i
        item.embedding = vectors[i]
        data.append(item)
    response = MagicMock()
    response.data = data
    response.usage.total_tokens = 7
    return response


# ======================================================================
# OpenAIEmbeddingProvider
# ======================================================================


class TestOpenAIEmbeddingProvider:
    def test_dimension_and_name(self) -> None:
        with patch("docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"):
            provider = OpenAIEmbeddingProvider(settings=_settings(openai_api_key="sk-test"))
        assert provider.get_dimension() == 1536
        assert provider.get_provider_name() == "openai_embedding"
        assert provider.is_available()

    def test_compatible_endpoint_name(self) -> None:
        with patch(
            "docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"
        ) as mock_cls:
            provider = OpenAIEmbeddingProvider(
                settings=_settings(openai_api_key="k", openai_base_url="http://localhost:1234/v1")
            )
        assert provider.get_provider_name() == "openai-compatible_embedding"
        assert mock_cls.call_args.kwargs["base_url"] == "http://localhost:1234/v1"

    def test_unavailable_without_key(self) -> None:
        with patch("docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"):
            provider = OpenAIEmbeddingProvider(settings=_settings())
        assert not provider.is_available()

    def test_shared_http_client_passed_through(self) -> None:
        http_client = MagicMock(spec=httpx.AsyncClient)
        with patch(
            "docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"
        ) as mock_cls:
            OpenAIEmbeddingProvider(settings=_settings(openai_api_key="k"), http_client=http_client)
        assert mock_cls.call_args.kwargs["http_client"] is http_client

    @pytest.mark.asyncio
    async def test_embed_single(self) -> None:
        mock_client = MagicMock()
        mock_client.embeddings.create = AsyncMock(
            return_value=_embedding_response([[0.1, 0.2, 0.3]])
        )
        with patch(
            "docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(
                settings=_settings(openai_api_key="k", embedding_dimension=3)
            )

        vector = await provider.embed("The sky is blue.")

        assert vector == [0.1, 0.2, 0.3]
        kwargs = mock_client.embeddings.create.call_args.kwargs
        assert kwargs["input"] == ["The sky is blue."]
        assert kwargs["model"] == "text-embedding-3-small"
        assert kwargs["dimensions"] == 3

    @pytest.mark.asyncio
    async def test_embed_query_same_as_embed(self) -> None:
        mock_client = MagicMock()
        mock_client.embeddings.create = AsyncMock(return_value=_embedding_response([[0.5, 0.5]]))
        with patch(
            "docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(
                settings=_settings(openai_api_key="k", embedding_dimension=2)
            )

        assert await provider.embed_query("What color is the sky?") == [0.5, 0.5]
        assert mock_client.embeddings.create.call_args.kwargs["input"] == ["What color is the sky?"]

    @pytest.mark.asyncio
    async def test_batch_reordered_by_index(self) -> None:
        mock_client = MagicMock()
        mock_client.embeddings.create = AsyncMock(
            return_value=_embedding_response([[1.0], [2.0], [3.0]], order=[2, 0, 1])
        )
        with patch(
            "docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(settings=_settings(openai_api_key="k"))

        assert await provider.embed_batch(["a", "b", "c"]) == [[1.0], [2.0], [3.0]]

    @pytest.mark.asyncio
    async def test_legacy_model_sends_no_dimensions(self) -> None:
        mock_client = MagicMock()
        mock_client.embeddings.create = AsyncMock(return_value=_embedding_response([[0.5]]))
        with patch(
            "docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(
                settings=_settings(openai_api_key="k", openai_embedding_model="text-embedding-ada-002")
            )

        await provider.embed("x")
        assert "dimensions" not in mock_client.embeddings.create.call_args.kwargs
        assert provider.get_dimension() == 1536

    @pytest.mark.asyncio
    async def test_empty_batch_skips_request(self) -> None:
        mock_client = MagicMock()
        mock_client.embeddings.create = AsyncMock()
        with patch(
            "docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(settings=_settings(openai_api_key="k"))

        assert await provider.embed_batch([]) == []
        mock_client.embeddings.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self) -> None:
        mock_client = MagicMock()
        mock_client.embeddings.create = AsyncMock(
            side_effect=openai.APIConnectionError(
                request=httpx.Request("POST", "https://api.openai.com/v1/embeddings")
            )
        )
        with patch(
            "docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(settings=_settings(openai_api_key="k"))

        with pytest.raises(ProviderError) as exc_info:
            await provider.embed("x")
        assert exc_info.value.provider_name == "openai_embedding"


# ======================================================================
# GeminiEmbeddingProvider
# ======================================================================


class TestGeminiEmbeddingProvider:
    def test_dimension_and_configure(self) -> None:
        with patch("docqa.providers.embedding.gemini_embedding_provider.genai") as mock_genai:
            provider = GeminiEmbeddingProvider(settings=_settings(gemini_api_key="g-key"))
        mock_genai.configure.assert_called_once_with(api_key="g-key")
        assert provider.get_dimension() == 768
        assert provider.get_provider_name() == "gemini_embedding"
        assert provider.is_available()

    def test_no_configure_without_key(self) -> None:
        with patch("docqa.providers.embedding.gemini_embedding_provider.genai") as mock_genai:
            provider = GeminiEmbeddingProvider(settings=_settings())
        mock_genai.configure.assert_not_called()
        assert not provider.is_available()

    @pytest.mark.asyncio
    async def test_embed(self) -> None:
        with patch("docqa.providers.embedding.gemini_embedding_provider.genai") as mock_genai:
            mock_genai.embed_content.return_value = {"embedding": [0.1, 0.2]}
            provider = GeminiEmbeddingProvider(settings=_settings(gemini_api_key="g"))
            vector = await provider.embed("The sky is blue.")

        assert vector == [0.1, 0.2]
        kwargs = mock_genai.embed_content.call_args.kwargs
        assert kwargs["model"] == "models/text-embedding-004"
        assert kwargs["content"] == "The sky is blue."
        assert kwargs["task_type"] == "retrieval_document"

    @pytest.mark.asyncio
    async def test_embed_query_uses_query_task_type(self) -> None:
        with patch("docqa.providers.embedding.gemini_embedding_provider.genai") as mock_genai:
            mock_genai.embed_content.return_value = {"embedding": [0.3, 0.4]}
            provider = GeminiEmbeddingProvider(settings=_settings(gemini_api_key="g"))
            vector = await provider.embed_query("What color is the sky?")

        assert vector == [0.3, 0.4]
        kwargs = mock_genai.embed_content.call_args.kwargs
        assert kwargs["content"] == "What color is the sky?"
        assert kwargs["task_type"] == "retrieval_query"

    @pytest.mark.asyncio
    async def test_missing_embedding_returns_empty(self) -> None:
        with patch("docqa.providers.embedding.gemini_embedding_provider.genai") as mock_genai:
            mock_genai.embed_content.return_value = {}
            provider = GeminiEmbeddingProvider(settings=_settings(gemini_api_key="g"))
            assert await provider.embed("x") == []

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self) -> None:
        with patch("docqa.providers.embedding.gemini_embedding_provider.genai") as mock_genai:
            mock_genai.embed_content.side_effect = google_exceptions.ServiceUnavailable("down")
            provider = GeminiEmbeddingProvider(settings=_settings(gemini_api_key="g"))
            with pytest.raises(ProviderError):
                await provider.embed("x")
