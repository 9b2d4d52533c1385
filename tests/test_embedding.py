from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pinecone_context.context.cache import TTLCache
from pinecone_context.context.embedder import CachedEmbedder
from pinecone_context.embedding import create_embedding_provider
from pinecone_context.embedding.adapters.openai import OpenAIEmbeddingProvider
from pinecone_context.embedding.config import OpenAIEmbeddingConfig


def _config() -> OpenAIEmbeddingConfig:
    return OpenAIEmbeddingConfig(model="text-embedding-3-small", dimensions=3, api_key="sk-test")


def _response(vectors: list[list[float]]) -> SimpleNamespace:
    return SimpleNamespace(data=[SimpleNamespace(embedding=v) for v in vectors])


def _provider(embed_side_effect=None) -> MagicMock:
    provider = MagicMock()
    provider.embed = AsyncMock(side_effect=embed_side_effect)
    provider.embed_query = AsyncMock(return_value=[0.5, 0.5])
    return provider


class TestOpenAIEmbeddingProvider:
    @pytest.mark.asyncio
    async def test_embed_calls_client_once_for_small_input(self) -> None:
        client = MagicMock()
        client.embeddings.create = AsyncMock(return_value=_response([[1.0], [2.0]]))
        provider = OpenAIEmbeddingProvider(_config(), client=client)

        vectors = await provider.embed(["a", "b"])

        assert vectors == [[1.0], [2.0]]
        client.embeddings.create.assert_awaited_once_with(
            model="text-embedding-3-small", input=["a", "b"]
        )

    @pytest.mark.asyncio
    async def test_embed_empty_skips_client(self) -> None:
        client = MagicMock()
        client.embeddings.create = AsyncMock()
        provider = OpenAIEmbeddingProvider(_config(), client=client)

        assert await provider.embed([]) == []
        client.embeddings.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_embed_splits_on_token_budget(self) -> None:
        client = MagicMock()
        client.embeddings.create = AsyncMock(
            side_effect=[_response([[1.0], [2.0]]), _response([[3.0]])]
        )
        provider = OpenAIEmbeddingProvider(_config(), client=client)

        with patch(
            "pinecone_context.embedding.adapters.openai.count_tokens",
            return_value=120_000,
        ):
            vectors = await provider.embed(["a", "b", "c"])

        assert vectors == [[1.0], [2.0], [3.0]]
        assert client.embeddings.create.await_count == 2
        assert client.embeddings.create.await_args_list[0].kwargs["input"] == ["a", "b"]
        assert client.embeddings.create.await_args_list[1].kwargs["input"] == ["c"]

    @pytest.mark.asyncio
    async def test_embed_query_returns_single_vector(self) -> None:
        client = MagicMock()
        client.embeddings.create = AsyncMock(return_value=_response([[0.1, 0.2]]))
        provider = OpenAIEmbeddingProvider(_config(), client=client)

        assert await provider.embed_query("hi") == [0.1, 0.2]

    @pytest.mark.asyncio
    async def test_aclose_closes_client(self) -> None:
        client = MagicMock()
        client.close = AsyncMock()
        provider = OpenAIEmbeddingProvider(_config(), client=client)

        await provider.aclose()

        client.close.assert_awaited_once()

    def test_factory_builds_openai_provider(self) -> None:
        with patch("pinecone_context.embedding.adapters.openai.AsyncOpenAI") as mock_client:
            provider = create_embedding_provider(_config())

        assert isinstance(provider, OpenAIEmbeddingProvider)
        mock_client.assert_called_once_with(api_key="sk-test", base_url=None)


class TestCachedEmbedder:
    @pytest.mark.asyncio
    async def test_embed_is_cached(self) -> None:
        provider = _provider()
        embedder = CachedEmbedder(provider, TTLCache())

        first = await embedder.embed("query")
        second = await embedder.embed("query")

        assert first == second == [0.5, 0.5]
        provider.embed_query.assert_awaited_once_with("query")

    @pytest.mark.asyncio
    async def test_embed_many_uses_one_provider_call(self) -> None:
        provider = _provider(embed_side_effect=lambda texts: [[float(len(t))] for t in texts])
        embedder = CachedEmbedder(provider, TTLCache())

        vectors = await embedder.embed_many(["a", "bb", "ccc"])

        assert vectors == [[1.0], [2.0], [3.0]]
        provider.embed.assert_awaited_once_with(["a", "bb", "ccc"])

    @pytest.mark.asyncio
    async def test_embed_many_reuses_cached_vectors(self) -> None:
        provider = _provider(embed_side_effect=lambda texts: [[9.0] for _ in texts])
        cache: TTLCache[str, list[float]] = TTLCache()
        cache.set("known", [1.0])
        embedder = CachedEmbedder(provider, cache)

        vectors = await embedder.embed_many(["x", "known", "y"])

        assert vectors == [[9.0], [1.0], [9.0]]
        provider.embed.assert_awaited_once_with(["x", "y"])

    @pytest.mark.asyncio
    async def test_embed_many_does_not_fill_cache(self) -> None:
        provider = _provider(embed_side_effect=lambda texts: [[1.0] for _ in texts])
        cache: TTLCache[str, list[float]] = TTLCache()
        embedder = CachedEmbedder(provider, cache)

        await embedder.embed_many(["a", "b"])

        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_embed_many_rejects_short_response(self) -> None:
        provider = _provider(embed_side_effect=lambda texts: [[1.0]])
        embedder = CachedEmbedder(provider, TTLCache())

        with pytest.raises(RuntimeError, match="returned 1 vectors for 2 inputs"):
            await embedder.embed_many(["a", "b"])

    @pytest.mark.asyncio
    async def test_embed_many_empty(self) -> None:
        provider = _provider()
        embedder = CachedEmbedder(provider, TTLCache())

        assert await embedder.embed_many([]) == []
        provider.embed.assert_not_awaited()
