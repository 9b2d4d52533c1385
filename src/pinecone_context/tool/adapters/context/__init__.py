from pinecone_context.tool.adapters.context.context import ContextTool

__all__ = ["ContextTool"]
