from pinecone_context.tool.registry import ToolRegistry
from pinecone_context.tool.tool import AbstractTool, ToolConfig
from pinecone_context.tool.types import ToolOperation, ToolOperationResult

__all__ = [
    "AbstractTool",
    "ToolConfig",
    "ToolOperation",
    "ToolOperationResult",
    "ToolRegistry",
]
