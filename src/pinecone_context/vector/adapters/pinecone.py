import asyncio
from typing import Any

import structlog
from pinecone import PineconeAsyncio, ServerlessSpec

from pinecone_context.vector.config import PineconeIndexConfig
from pinecone_context.vector.index import MAX_UPSERT_BATCH, AbstractVectorIndex
from pinecone_context.vector.types import IndexStats, QueryMatch, VectorRecord

_logger = structlog.get_logger()


class PineconeVectorIndex(AbstractVectorIndex):
    config: PineconeIndexConfig

    def __init__(self, config: PineconeIndexConfig, client: Any | None = None) -> None:
        super().__init__(config)
        self._client = client or PineconeAsyncio(api_key=config.api_key)
        self._index: Any | None = None

    async def _data_plane(self) -> Any:
        if self._index is None:
            description = await self._client.describe_index(name=self.config.index_name)
            self._index = self._client.IndexAsyncio(host=description.host)
            _logger.debug("index_connected", index=self.config.index_name, host=description.host)
        return self._index

    def _namespace_kwargs(self) -> dict[str, str]:
        return {"namespace": self.config.namespace} if self.config.namespace else {}

    async def upsert(self, records: list[VectorRecord]) -> None:
        if len(records) > MAX_UPSERT_BATCH:
            msg = f"Upsert batch of {len(records)} exceeds the limit of {MAX_UPSERT_BATCH}"
            raise ValueError(msg)

        index = await self._data_plane()
        await index.upsert(
            vectors=[record.to_dict() for record in records],
            **self._namespace_kwargs(),
        )

    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter: dict[str, Any] | None = None,
        include_metadata: bool = True,
    ) -> list[QueryMatch]:
        index = await self._data_plane()
        response = await index.query(
            vector=vector,
            top_k=top_k,
            filter=filter,
            include_metadata=include_metadata,
            **self._namespace_kwargs(),
        )
        return [
            QueryMatch(id=match.id, score=match.score, metadata=dict(match.metadata or {}))
            for match in response.matches or []
        ]

    async def delete_many(self, filter: dict[str, Any]) -> None:
        index = await self._data_plane()
        await index.delete(filter=filter, **self._namespace_kwargs())
        _logger.info("context_deleted", index=self.config.index_name, filter=filter)

    async def describe_stats(self) -> IndexStats:
        index = await self._data_plane()
        stats = await index.describe_index_stats()
        namespaces = {
            name: int(summary.vector_count) for name, summary in (stats.namespaces or {}).items()
        }
        return IndexStats(
            total_vector_count=int(stats.total_vector_count or 0),
            dimension=int(stats.dimension or 0),
            namespaces=namespaces,
        )

    async def ensure_index(self, dimension: int) -> bool:
        name = self.config.index_name
        if await self._client.has_index(name):
            _logger.info("index_exists", index=name)
            return False

        _logger.info("index_creating", index=name, dimension=dimension, metric=self.config.metric)
        await self._client.create_index(
            name=name,
            dimension=dimension,
            metric=self.config.metric,
            spec=ServerlessSpec(cloud=self.config.cloud, region=self.config.region),
            timeout=-1,
        )

        while True:
            await asyncio.sleep(self.config.ready_poll_seconds)
            description = await self._client.describe_index(name=name)
            if description.status.ready:
                break
            _logger.info("index_initializing", index=name)

        _logger.info("index_ready", index=name)
        return True

    async def aclose(self) -> None:
        if self._index is not None:
            await self._index.close()
            self._index = None
        await self._client.close()
