from pinecone_context.context.cache import CacheEntry, TTLCache
from pinecone_context.context.chunker import Chunker
from pinecone_context.context.embedder import CachedEmbedder
from pinecone_context.context.formatter import format_context, group_results
from pinecone_context.context.ids import context_id
from pinecone_context.context.search import ContextSearcher
from pinecone_context.context.store import ContextStore, detect_language
from pinecone_context.context.types import (
    CodeMetadata,
    ContextChunk,
    ContextMetadata,
    ContextType,
    ConversationMetadata,
    DecisionMetadata,
    DeploymentMetadata,
    DocumentationMetadata,
    GroupedResults,
    OtherMetadata,
    SearchFilter,
    SearchResult,
    TextMetadata,
    metadata_from_wire,
)

__all__ = [
    "CacheEntry",
    "CachedEmbedder",
    "Chunker",
    "CodeMetadata",
    "ContextChunk",
    "ContextMetadata",
    "ContextSearcher",
    "ContextStore",
    "ContextType",
    "ConversationMetadata",
    "DecisionMetadata",
    "DeploymentMetadata",
    "DocumentationMetadata",
    "GroupedResults",
    "OtherMetadata",
    "SearchFilter",
    "SearchResult",
    "TTLCache",
    "TextMetadata",
    "context_id",
    "detect_language",
    "format_context",
    "group_results",
    "metadata_from_wire",
]
