from abc import ABC, abstractmethod

from pinecone_context.embedding.config import AbstractEmbeddingConfig


class AbstractEmbeddingProvider(ABC):
    def __init__(self, config: AbstractEmbeddingConfig) -> None:
        self.config = config

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per input text, in input order."""
        ...

    async def embed_query(self, text: str) -> list[float]:
        return (await self.embed([text]))[0]

    async def aclose(self) -> None:  # noqa: B027
        """Release network resources held by the provider."""
