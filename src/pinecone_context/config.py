from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pinecone_context.embedding.config import (
    DEFAULT_DIMENSIONS,
    DEFAULT_EMBEDDING_MODEL,
    AbstractEmbeddingConfig,
    EmbeddingProviderType,
    OpenAIEmbeddingConfig,
)
from pinecone_context.util import PROJECT_ROOT, load_yaml_config
from pinecone_context.vector.config import (
    AbstractIndexConfig,
    IndexProviderType,
    PineconeIndexConfig,
)

CONTEXT_CONFIG_PATH = PROJECT_ROOT / "config" / "context.yaml"

_DEFAULTS: dict[str, Any] = {
    "embedding": {
        "provider": "openai",
        "model": DEFAULT_EMBEDDING_MODEL,
        "dimensions": DEFAULT_DIMENSIONS,
        "openai": {
            "api_key_env": "OPENAI_API_KEY",
            "api_url_env": "OPENAI_BASE_URL",
        },
    },
    "index": {
        "provider": "pinecone",
        "pinecone": {
            "api_key_env": "PINECONE_API_KEY",
            "index_name_env": "PINECONE_INDEX_NAME",
            "cloud": "aws",
            "region": "us-east-1",
        },
    },
    "chunking": {"max_chunk_size": 1000, "overlap": 100},
    "cache": {"ttl_seconds": 300, "max_entries": 100},
    "search": {"top_k": 5, "max_top_k": 20},
    "logging": {"json_output": False, "log_level": "INFO"},
}


@dataclass
class ChunkingConfig:
    max_chunk_size: int = 1000
    overlap: int = 100


@dataclass
class CacheConfig:
    ttl_seconds: float = 300.0
    max_entries: int = 100


@dataclass
class SearchConfig:
    top_k: int = 5
    max_top_k: int = 20  # clamp applied by the MCP tool


@dataclass
class LoggingConfig:
    json_output: bool = False
    log_level: str = "INFO"


@dataclass
class ContextConfig:
    embedding: AbstractEmbeddingConfig
    index: AbstractIndexConfig
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_raw_config(config_path: Path = CONTEXT_CONFIG_PATH) -> dict[str, Any]:
    return load_yaml_config(config_path, defaults=_DEFAULTS)


def load_context_config(config_path: Path = CONTEXT_CONFIG_PATH) -> ContextConfig:
    """Load the context config. Raises ``ValueError`` when credentials are missing."""
    return parse_context_config(load_raw_config(config_path))


def parse_logging_config(raw: dict[str, Any]) -> LoggingConfig:
    logging_raw = raw.get("logging", {})
    return LoggingConfig(
        json_output=bool(logging_raw.get("json_output", False)),
        log_level=str(logging_raw.get("log_level") or "INFO"),
    )


def parse_context_config(raw: dict[str, Any]) -> ContextConfig:
    if "embedding" not in raw:
        raise ValueError("Missing 'embedding' section in context config")
    if "index" not in raw:
        raise ValueError("Missing 'index' section in context config")

    chunking_raw = raw.get("chunking", {})
    cache_raw = raw.get("cache", {})
    search_raw = raw.get("search", {})

    return ContextConfig(
        embedding=_parse_embedding_config(raw["embedding"]),
        index=_parse_index_config(raw["index"]),
        chunking=ChunkingConfig(
            max_chunk_size=int(chunking_raw.get("max_chunk_size", 1000)),
            overlap=int(chunking_raw.get("overlap", 100)),
        ),
        cache=CacheConfig(
            ttl_seconds=float(cache_raw.get("ttl_seconds", 300)),
            max_entries=int(cache_raw.get("max_entries", 100)),
        ),
        search=SearchConfig(
            top_k=int(search_raw.get("top_k", 5)),
            max_top_k=int(search_raw.get("max_top_k", 20)),
        ),
        logging=parse_logging_config(raw),
    )


def _parse_embedding_config(raw: dict[str, Any]) -> AbstractEmbeddingConfig:
    provider_key = raw.get("provider", "openai")
    provider_type = EmbeddingProviderType(provider_key)

    model = raw.get("model", "")
    if not model:
        raise ValueError("Missing 'embedding.model' in context config")

    dimensions = int(raw.get("dimensions", DEFAULT_DIMENSIONS))
    provider_raw = raw.get(provider_key, {})

    match provider_type:
        case EmbeddingProviderType.OPENAI:
            return OpenAIEmbeddingConfig.from_envs(provider_raw, model, dimensions)


def _parse_index_config(raw: dict[str, Any]) -> AbstractIndexConfig:
    provider_key = raw.get("provider", "pinecone")
    provider_type = IndexProviderType(provider_key)
    provider_raw = raw.get(provider_key, {})

    match provider_type:
        case IndexProviderType.PINECONE:
            return PineconeIndexConfig.from_envs(provider_raw)
