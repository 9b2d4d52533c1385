from dataclasses import dataclass, field
from typing import Any

MetadataValue = str | int | float | bool | list[str]


@dataclass
class VectorRecord:
    id: str
    values: list[float]
    metadata: dict[str, MetadataValue] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "values": self.values, "metadata": self.metadata}


@dataclass
class QueryMatch:
    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class IndexStats:
    total_vector_count: int
    dimension: int
    namespaces: dict[str, int] = field(default_factory=dict)
