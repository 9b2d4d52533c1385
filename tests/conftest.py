import math
from typing import Any

import pytest

from pinecone_context.vector.config import PineconeIndexConfig
from pinecone_context.vector.index import AbstractVectorIndex
from pinecone_context.vector.types import IndexStats, QueryMatch, VectorRecord


def _matches(metadata: dict[str, Any], filter: dict[str, Any] | None) -> bool:
    for key, condition in (filter or {}).items():
        value = metadata.get(key)
        if isinstance(condition, dict):
            if value not in condition.get("$in", []):
                return False
        elif value != condition:
            return False
    return True


def _cosine(a: list[float], b: list[float]) -> float:
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return sum(x * y for x, y in zip(a, b, strict=True)) / norm if norm else 0.0


class InMemoryIndex(AbstractVectorIndex):
    """Index double that applies the equality / ``$in`` filter grammar locally."""

    def __init__(self) -> None:
        super().__init__(PineconeIndexConfig(index_name="test-index", api_key="test"))
        self.records: dict[str, VectorRecord] = {}
        self.upsert_sizes: list[int] = []
        self.query_calls: list[dict[str, Any]] = []
        self.deleted_filters: list[dict[str, Any]] = []

    async def upsert(self, records: list[VectorRecord]) -> None:
        self.upsert_sizes.append(len(records))
        for record in records:
            self.records[record.id] = record

    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter: dict[str, Any] | None = None,
        include_metadata: bool = True,
    ) -> list[QueryMatch]:
        self.query_calls.append({"vector": vector, "top_k": top_k, "filter": filter})
        scored = [
            QueryMatch(id=r.id, score=_cosine(vector, r.values), metadata=dict(r.metadata))
            for r in self.records.values()
            if _matches(r.metadata, filter)
        ]
        scored.sort(key=lambda m: m.score, reverse=True)
        return scored[:top_k]

    async def delete_many(self, filter: dict[str, Any]) -> None:
        self.deleted_filters.append(filter)
        self.records = {
            rid: r for rid, r in self.records.items() if not _matches(r.metadata, filter)
        }

    async def describe_stats(self) -> IndexStats:
        dimension = len(next(iter(self.records.values())).values) if self.records else 0
        return IndexStats(total_vector_count=len(self.records), dimension=dimension)

    async def ensure_index(self, dimension: int) -> bool:
        return False


@pytest.fixture
def memory_index() -> InMemoryIndex:
    return InMemoryIndex()
