from typing import Any

import structlog

from pinecone_context.tool.tool import AbstractTool
from pinecone_context.tool.types import ToolOperation, ToolOperationResult

_logger = structlog.get_logger()


class ToolRegistry:
    """Holds tool instances and routes operation calls to the owning tool."""

    def __init__(self) -> None:
        self._tools: dict[str, AbstractTool] = {}
        self._operation_map: dict[str, AbstractTool] = {}

    def register(self, tool: AbstractTool) -> None:
        """Add *tool*; nothing is registered if a name or operation clashes."""
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")

        operations = tool.operations()
        for operation in operations:
            owner = self._operation_map.get(operation.name)
            if owner is not None:
                msg = f"Operation '{operation.name}' already registered by tool '{owner.name}'"
                raise ValueError(msg)

        self._tools[tool.name] = tool
        self._operation_map.update({operation.name: tool for operation in operations})

        _logger.info(
            "tool_registered",
            tool=tool.name,
            operations=[operation.name for operation in operations],
        )

    def get_all_operations(self) -> list[ToolOperation]:
        return [operation for tool in self._tools.values() for operation in tool.operations()]

    async def execute(self, operation_name: str, **kwargs: Any) -> ToolOperationResult:
        """Validate and run one operation. Raises ``KeyError`` for unknown names."""
        tool = self._operation_map.get(operation_name)
        if tool is None:
            raise KeyError(f"Unknown operation: '{operation_name}'")

        valid, error_message = tool.validate(operation_name, **kwargs)
        if not valid:
            _logger.warning(
                "tool_validation_failed",
                operation=operation_name,
                error=error_message,
            )
            return ToolOperationResult(
                content=f"Validation failed: {error_message}",
                success=False,
            )

        _logger.debug("tool_operation_dispatched", operation=operation_name, tool=tool.name)
        return await tool.run(operation_name, **kwargs)
