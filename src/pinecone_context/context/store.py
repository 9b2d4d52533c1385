from datetime import UTC, datetime
from pathlib import PurePath
from typing import Any

import structlog

from pinecone_context.context.chunker import Chunker
from pinecone_context.context.embedder import CachedEmbedder
from pinecone_context.context.ids import context_id
from pinecone_context.context.types import (
    DEFAULT_PROJECT,
    CodeMetadata,
    ContextChunk,
    ContextMetadata,
    ConversationMetadata,
    DocumentationMetadata,
)
from pinecone_context.vector.index import MAX_UPSERT_BATCH, AbstractVectorIndex

_logger = structlog.get_logger()

_LANGUAGES = {
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
    "rb": "ruby",
    "go": "go",
    "rs": "rust",
    "java": "java",
    "cs": "csharp",
    "cpp": "cpp",
    "c": "c",
    "html": "html",
    "css": "css",
    "json": "json",
    "yaml": "yaml",
    "yml": "yaml",
    "md": "markdown",
    "sql": "sql",
}


def detect_language(file_path: str) -> str:
    """Map a file extension to a language name, ``unknown`` when unmapped."""
    suffix = PurePath(file_path).suffix.lstrip(".").lower()
    return _LANGUAGES.get(suffix, "unknown")


class ContextStore:
    """Chunks, embeds and upserts text into the vector index."""

    def __init__(
        self,
        index: AbstractVectorIndex,
        embedder: CachedEmbedder,
        chunker: Chunker,
        upsert_batch_size: int = MAX_UPSERT_BATCH,
    ) -> None:
        if not 0 < upsert_batch_size <= MAX_UPSERT_BATCH:
            msg = f"upsert_batch_size must be between 1 and {MAX_UPSERT_BATCH}"
            raise ValueError(msg)
        self._index = index
        self._embedder = embedder
        self._chunker = chunker
        self._upsert_batch_size = upsert_batch_size

    async def store(self, text: str, metadata: ContextMetadata) -> list[str]:
        """Store *text* and return the ids of its chunks, in chunk order."""
        chunks = self._chunker.chunk(text)
        if not chunks:
            _logger.warning("context_empty", type=metadata.type, project=metadata.project)
            return []

        embeddings = await self._embedder.embed_many(chunks)
        timestamp = datetime.now(UTC).isoformat()
        wire_metadata = metadata.to_wire()

        context_chunks = [
            ContextChunk(
                id=context_id(chunk, {**wire_metadata, "chunkIndex": i}),
                text=chunk,
                embedding=embedding,
                metadata=metadata,
                chunk_index=i,
                total_chunks=len(chunks),
                timestamp=timestamp,
            )
            for i, (chunk, embedding) in enumerate(zip(chunks, embeddings, strict=True))
        ]

        # Batches are sent one at a time; there is no atomicity across batches.
        for i in range(0, len(context_chunks), self._upsert_batch_size):
            batch = context_chunks[i : i + self._upsert_batch_size]
            _logger.debug("upsert_batch", batch_size=len(batch), offset=i)
            await self._index.upsert([chunk.to_record() for chunk in batch])

        _logger.info(
            "context_stored",
            type=metadata.type,
            project=metadata.project,
            vectors=len(context_chunks),
        )
        return [chunk.id for chunk in context_chunks]

    async def store_conversation(
        self,
        role: str,
        content: str,
        project: str = DEFAULT_PROJECT,
        **extra: Any,
    ) -> list[str]:
        return await self.store(
            content,
            ConversationMetadata(role=role, project=project, extra=extra),
        )

    async def store_code_file(
        self,
        file_path: str,
        content: str,
        project: str = DEFAULT_PROJECT,
        **extra: Any,
    ) -> list[str]:
        return await self.store(
            content,
            CodeMetadata(
                file_path=file_path,
                language=detect_language(file_path),
                project=project,
                extra=extra,
            ),
        )

    async def store_documentation(
        self,
        title: str,
        content: str,
        project: str = DEFAULT_PROJECT,
        **extra: Any,
    ) -> list[str]:
        return await self.store(
            content,
            DocumentationMetadata(title=title, project=project, extra=extra),
        )
