from pathlib import Path
from typing import Any

import structlog

from pinecone_context.context.types import (
    ContextMetadata,
    ContextType,
    ConversationMetadata,
    DecisionMetadata,
    SearchFilter,
    SearchResult,
    TextMetadata,
)
from pinecone_context.service import ContextService
from pinecone_context.tool.tool import AbstractTool, ToolConfig
from pinecone_context.tool.types import ToolOperationResult

_logger = structlog.get_logger()

_DEFAULT_TOP_K = 5
_MAX_TOP_K = 20
_REMEMBER_ROLE = "assistant"
_TITLE_LENGTH = 80


class ContextTool(AbstractTool):
    _operations_path = Path(__file__).parent / "operations.yaml"

    @property
    def name(self) -> str:
        return "pinecone_context"

    @property
    def description(self) -> str:
        return "Search, inspect and extend the Pinecone context index"

    def __init__(self, config: ToolConfig, service: ContextService) -> None:
        super().__init__(config)
        self._service = service
        self._default_top_k = int(config.get("top_k", _DEFAULT_TOP_K))
        self._max_top_k = int(config.get("max_top_k", _MAX_TOP_K))

    async def run(self, operation: str, **kwargs: Any) -> ToolOperationResult:
        _logger.info("context_tool_operation", operation=operation, params=list(kwargs.keys()))
        try:
            match operation:
                case "pinecone_search":
                    return await self._search(**kwargs)
                case "pinecone_stats":
                    return await self._stats()
                case "pinecone_remember":
                    return await self._remember(**kwargs)
                case _:
                    return ToolOperationResult(
                        content=f"Unknown tool: {operation}",
                        success=False,
                    )
        except Exception as exc:
            _logger.error("context_tool_error", operation=operation, error=str(exc))
            return ToolOperationResult(content=f"Error: {exc}", success=False)

    def clamp_top_k(self, top_k: Any) -> int:
        return min(int(top_k or self._default_top_k), self._max_top_k)

    async def _search(
        self,
        query: str,
        project: str | None = None,
        topK: Any = None,  # noqa: N803
        **_: Any,
    ) -> ToolOperationResult:
        results = await self._service.searcher.search(
            query,
            SearchFilter(project=project or None),
            self.clamp_top_k(topK),
        )

        if not results:
            return ToolOperationResult(content="No relevant context found.")

        formatted = "\n\n---\n\n".join(
            _format_match(i, result) for i, result in enumerate(results, 1)
        )
        return ToolOperationResult(content=formatted)

    async def _stats(self) -> ToolOperationResult:
        stats = await self._service.stats()
        return ToolOperationResult(
            content=(
                "Pinecone Index Stats:\n"
                f"- Total Vectors: {stats.total_vector_count}\n"
                f"- Dimensions: {stats.dimension}\n"
                f"- Index: {self._service.config.index.index_name}"
            )
        )

    async def _remember(
        self,
        text: str,
        project: str,
        type: str | None = None,  # noqa: A002
        **_: Any,
    ) -> ToolOperationResult:
        metadata = _remember_metadata(type or ContextType.TEXT, project, text)
        if metadata is None:
            return ToolOperationResult(content=f"Unsupported context type: {type}", success=False)

        ids = await self._service.store.store(text, metadata)
        if not ids:
            return ToolOperationResult(content="Nothing to store: text is empty", success=False)

        label = "ID" if len(ids) == 1 else "IDs"
        return ToolOperationResult(content=f"Stored context with {label}: {', '.join(ids)}")


def _remember_metadata(context_type: str, project: str, text: str) -> ContextMetadata | None:
    match context_type:
        case ContextType.TEXT:
            return TextMetadata(project=project)
        case ContextType.DECISION:
            title = text.strip().splitlines()[0][:_TITLE_LENGTH] if text.strip() else ""
            return DecisionMetadata(project=project, title=title)
        case ContextType.CONVERSATION:
            return ConversationMetadata(project=project, role=_REMEMBER_ROLE)
        case _:
            return None


def _format_match(position: int, result: SearchResult) -> str:
    header = f"[{position}] Score: {result.score:.3f}"
    if result.metadata.project:
        header += f" | Project: {result.metadata.project}"
    if result.type:
        header += f" | Type: {result.type}"
    if file_path := result.metadata.to_wire().get("filePath"):
        header += f"\nFile: {file_path}"
    return f"{header}\n{result.text}"
