import structlog

from pinecone_context.context.cache import TTLCache
from pinecone_context.embedding.provider import AbstractEmbeddingProvider

_logger = structlog.get_logger()


class CachedEmbedder:
    """Memoizes embeddings by raw text in front of an embedding provider.

    Single-text lookups (queries) go through the cache. Batch lookups reuse
    cached vectors but do not insert document chunks, so one large indexing
    run cannot flush the entries interactive search depends on.
    """

    def __init__(
        self,
        provider: AbstractEmbeddingProvider,
        cache: TTLCache[str, list[float]],
    ) -> None:
        self._provider = provider
        self._cache = cache

    @property
    def provider(self) -> AbstractEmbeddingProvider:
        return self._provider

    async def embed(self, text: str) -> list[float]:
        return await self._cache.get_or_compute(text, lambda: self._provider.embed_query(text))

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed a whole submission with at most one provider call."""
        if not texts:
            return []

        vectors: list[list[float] | None] = [self._cache.get(text) for text in texts]
        missing = [i for i, vector in enumerate(vectors) if vector is None]

        if missing:
            computed = await self._provider.embed([texts[i] for i in missing])
            if len(computed) != len(missing):
                msg = f"Embedding provider returned {len(computed)} vectors for {len(missing)} inputs"
                raise RuntimeError(msg)
            for i, vector in zip(missing, computed, strict=True):
                vectors[i] = vector

        _logger.debug("embeddings_resolved", total=len(texts), cache_hits=len(texts) - len(missing))
        return [vector for vector in vectors if vector is not None]
