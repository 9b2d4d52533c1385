from pinecone_context.embedding.adapters.openai import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
