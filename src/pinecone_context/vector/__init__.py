from pinecone_context.vector.adapters import PineconeVectorIndex
from pinecone_context.vector.config import (
    AbstractIndexConfig,
    IndexProviderType,
    PineconeIndexConfig,
)
from pinecone_context.vector.index import MAX_UPSERT_BATCH, AbstractVectorIndex
from pinecone_context.vector.types import IndexStats, MetadataValue, QueryMatch, VectorRecord


def create_vector_index(config: AbstractIndexConfig) -> AbstractVectorIndex:
    match config:
        case PineconeIndexConfig():
            return PineconeVectorIndex(config)
        case _:
            raise ValueError(f"Unknown index config: {type(config).__name__}")


__all__ = [
    "MAX_UPSERT_BATCH",
    "AbstractIndexConfig",
    "AbstractVectorIndex",
    "IndexProviderType",
    "IndexStats",
    "MetadataValue",
    "PineconeIndexConfig",
    "PineconeVectorIndex",
    "QueryMatch",
    "VectorRecord",
    "create_vector_index",
]
