import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

DEFAULT_INDEX_NAME = "claude-context"


class IndexProviderType(StrEnum):
    PINECONE = "pinecone"


@dataclass
class AbstractIndexConfig(ABC):
    index_name: str

    @classmethod
    @abstractmethod
    def from_envs(cls, raw: dict[str, Any]) -> "AbstractIndexConfig": ...


@dataclass
class PineconeIndexConfig(AbstractIndexConfig):
    api_key: str
    cloud: str = "aws"
    region: str = "us-east-1"
    metric: str = "cosine"
    namespace: str | None = None
    ready_poll_seconds: float = 5.0

    @classmethod
    def from_envs(cls, raw: dict[str, Any]) -> "PineconeIndexConfig":
        api_key = os.getenv(raw.get("api_key_env", ""), "")
        if not api_key:
            raise ValueError(f"Missing env var: {raw.get('api_key_env', '')}")

        index_name = (
            os.getenv(raw.get("index_name_env", ""), "")
            or raw.get("index_name", "")
            or DEFAULT_INDEX_NAME
        )

        return cls(
            index_name=index_name,
            api_key=api_key,
            cloud=raw.get("cloud", "aws"),
            region=raw.get("region", "us-east-1"),
            metric=raw.get("metric", "cosine"),
            namespace=raw.get("namespace") or None,
            ready_poll_seconds=float(raw.get("ready_poll_seconds", 5.0)),
        )
