from collections.abc import Sequence
from types import TracebackType
from typing import Any

import structlog

from pinecone_context.config import ContextConfig
from pinecone_context.context.cache import TTLCache
from pinecone_context.context.chunker import Chunker
from pinecone_context.context.embedder import CachedEmbedder
from pinecone_context.context.search import ContextSearcher, SearchCacheKey
from pinecone_context.context.store import ContextStore
from pinecone_context.context.types import SearchResult
from pinecone_context.embedding import create_embedding_provider
from pinecone_context.embedding.provider import AbstractEmbeddingProvider
from pinecone_context.vector import create_vector_index
from pinecone_context.vector.index import AbstractVectorIndex
from pinecone_context.vector.types import IndexStats

_logger = structlog.get_logger()


class ContextService:
    """Owns the index and embedding clients and the pipelines built on them.

    Use as an async context manager so both clients are closed on exit.
    """

    def __init__(
        self,
        config: ContextConfig,
        index: AbstractVectorIndex,
        provider: AbstractEmbeddingProvider,
    ) -> None:
        self.config = config
        self.index = index
        self.provider = provider

        embedding_cache: TTLCache[str, list[float]] = TTLCache(
            ttl_seconds=config.cache.ttl_seconds,
            max_entries=config.cache.max_entries,
            name="embedding",
        )
        search_cache: TTLCache[SearchCacheKey, list[SearchResult]] = TTLCache(
            ttl_seconds=config.cache.ttl_seconds,
            max_entries=config.cache.max_entries,
            name="search",
        )
        self.embedder = CachedEmbedder(provider, embedding_cache)
        self.store = ContextStore(
            index=index,
            embedder=self.embedder,
            chunker=Chunker(
                max_chunk_size=config.chunking.max_chunk_size,
                overlap=config.chunking.overlap,
            ),
        )
        self.searcher = ContextSearcher(
            index=index,
            embedder=self.embedder,
            result_cache=search_cache,
        )

    @classmethod
    def from_config(cls, config: ContextConfig) -> "ContextService":
        return cls(
            config=config,
            index=create_vector_index(config.index),
            provider=create_embedding_provider(config.embedding),
        )

    async def setup_index(self) -> bool:
        return await self.index.ensure_index(self.config.embedding.dimensions)

    async def stats(self) -> IndexStats:
        return await self.index.describe_stats()

    async def delete_context(
        self,
        project: str | None = None,
        types: Sequence[str] | None = None,
        **filter_extra: Any,
    ) -> dict[str, Any]:
        """Delete every chunk matching the metadata filter."""
        filter_: dict[str, Any] = dict(filter_extra)
        if project:
            filter_["project"] = project
        if types:
            filter_["type"] = {"$in": list(types)}
        if not filter_:
            raise ValueError("Refusing to delete without a filter")

        await self.index.delete_many(filter_)
        return filter_

    async def aclose(self) -> None:
        try:
            await self.index.aclose()
        finally:
            await self.provider.aclose()

    async def __aenter__(self) -> "ContextService":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
