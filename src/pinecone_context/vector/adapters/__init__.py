from pinecone_context.vector.adapters.pinecone import PineconeVectorIndex

__all__ = ["PineconeVectorIndex"]
