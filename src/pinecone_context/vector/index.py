from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any

from pinecone_context.vector.config import AbstractIndexConfig
from pinecone_context.vector.types import IndexStats, QueryMatch, VectorRecord

MAX_UPSERT_BATCH = 100


class AbstractVectorIndex(ABC):
    """Remote similarity index. Filters use the equality / ``$in`` grammar."""

    def __init__(self, config: AbstractIndexConfig) -> None:
        self.config = config

    @abstractmethod
    async def upsert(self, records: list[VectorRecord]) -> None:
        """Insert-or-overwrite by id. At most ``MAX_UPSERT_BATCH`` records per call."""
        ...

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter: dict[str, Any] | None = None,
        include_metadata: bool = True,
    ) -> list[QueryMatch]: ...

    @abstractmethod
    async def delete_many(self, filter: dict[str, Any]) -> None: ...

    @abstractmethod
    async def describe_stats(self) -> IndexStats: ...

    @abstractmethod
    async def ensure_index(self, dimension: int) -> bool:
        """Create the index when missing. Returns True if it was created."""
        ...

    async def aclose(self) -> None:  # noqa: B027
        """Release network resources held by the index client."""

    async def __aenter__(self) -> "AbstractVectorIndex":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
