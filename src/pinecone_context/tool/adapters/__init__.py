from pinecone_context.tool.adapters.context import ContextTool

__all__ = ["ContextTool"]
