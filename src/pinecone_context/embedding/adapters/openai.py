from collections.abc import Iterator

import structlog
from openai import AsyncOpenAI

from pinecone_context.embedding.config import OpenAIEmbeddingConfig
from pinecone_context.embedding.provider import AbstractEmbeddingProvider
from pinecone_context.embedding.tokens import count_tokens

_logger = structlog.get_logger()

_MAX_BATCH_SIZE = 2048  # OpenAI input-array limit
_MAX_BATCH_TOKENS = 300_000  # OpenAI token-per-request limit


class OpenAIEmbeddingProvider(AbstractEmbeddingProvider):
    config: OpenAIEmbeddingConfig

    def __init__(self, config: OpenAIEmbeddingConfig, client: AsyncOpenAI | None = None) -> None:
        super().__init__(config)
        self._client = client or AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.api_url,
        )

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        all_embeddings: list[list[float]] = []

        for offset, batch in _batches(texts):
            _logger.debug("embedding_batch", batch_size=len(batch), offset=offset)

            response = await self._client.embeddings.create(
                model=self.config.model,
                input=batch,
            )
            all_embeddings.extend(item.embedding for item in response.data)

        return all_embeddings

    async def aclose(self) -> None:
        await self._client.close()


def _batches(texts: list[str]) -> Iterator[tuple[int, list[str]]]:
    """Yield ``(offset, batch)`` pairs bounded by input count and token budget."""
    batch: list[str] = []
    batch_tokens = 0
    offset = 0

    for i, text in enumerate(texts):
        tokens = count_tokens(text)
        if batch and (len(batch) >= _MAX_BATCH_SIZE or batch_tokens + tokens > _MAX_BATCH_TOKENS):
            yield offset, batch
            batch, batch_tokens, offset = [], 0, i
        batch.append(text)
        batch_tokens += tokens

    if batch:
        yield offset, batch
