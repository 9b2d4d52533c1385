from pinecone_context.embedding.adapters import OpenAIEmbeddingProvider
from pinecone_context.embedding.config import (
    AbstractEmbeddingConfig,
    EmbeddingProviderType,
    OpenAIEmbeddingConfig,
)
from pinecone_context.embedding.provider import AbstractEmbeddingProvider


def create_embedding_provider(config: AbstractEmbeddingConfig) -> AbstractEmbeddingProvider:
    match config:
        case OpenAIEmbeddingConfig():
            return OpenAIEmbeddingProvider(config)
        case _:
            raise ValueError(f"Unknown embedding config: {type(config).__name__}")


__all__ = [
    "AbstractEmbeddingConfig",
    "AbstractEmbeddingProvider",
    "EmbeddingProviderType",
    "OpenAIEmbeddingConfig",
    "OpenAIEmbeddingProvider",
    "create_embedding_provider",
]
