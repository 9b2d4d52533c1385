from collections.abc import Sequence

import structlog

from pinecone_context.context.cache import TTLCache
from pinecone_context.context.embedder import CachedEmbedder
from pinecone_context.context.formatter import group_results
from pinecone_context.context.types import GroupedResults, SearchFilter, SearchResult
from pinecone_context.vector.index import AbstractVectorIndex

_logger = structlog.get_logger()

DEFAULT_TOP_K = 5
DEFAULT_CONTEXT_TOP_K = 10

SearchCacheKey = tuple[str, str, int]


class ContextSearcher:
    def __init__(
        self,
        index: AbstractVectorIndex,
        embedder: CachedEmbedder,
        result_cache: TTLCache[SearchCacheKey, list[SearchResult]],
    ) -> None:
        self._index = index
        self._embedder = embedder
        self._result_cache = result_cache

    async def search(
        self,
        query: str,
        search_filter: SearchFilter | None = None,
        top_k: int = DEFAULT_TOP_K,
    ) -> list[SearchResult]:
        """Return the indexed chunks most similar to *query*, best first.

        The filter is passed through to the index untouched; nothing is
        filtered locally. Results are cached per (query, filter, top_k).
        """
        search_filter = search_filter or SearchFilter()
        cache_key: SearchCacheKey = (query, search_filter.cache_key(), top_k)

        cached = self._result_cache.get(cache_key)
        if cached is not None:
            _logger.debug("search_cache_hit", query_preview=query[:80], top_k=top_k)
            return list(cached)

        query_embedding = await self._embedder.embed(query)
        matches = await self._index.query(
            vector=query_embedding,
            top_k=top_k,
            filter=search_filter.to_wire(),
            include_metadata=True,
        )

        results = sorted(
            (SearchResult.from_match(match) for match in matches),
            key=lambda r: r.score,
            reverse=True,
        )
        self._result_cache.set(cache_key, results)

        _logger.debug(
            "context_search",
            query_preview=query[:80],
            filter=search_filter.cache_key(),
            top_k=top_k,
            matched=len(results),
        )
        return list(results)

    async def get_relevant_context(
        self,
        query: str,
        project: str | None = None,
        types: Sequence[str] | None = None,
        top_k: int = DEFAULT_CONTEXT_TOP_K,
    ) -> GroupedResults:
        """Search and group the results by type, with a prompt-ready string."""
        search_filter = SearchFilter(project=project, types=tuple(types) if types else None)
        results = await self.search(query, search_filter, top_k)
        return group_results(results)
