from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pinecone_context.tool.types import ToolOperation, ToolOperationResult
from pinecone_context.util import load_yaml_config

ToolConfig = dict[str, Any]
"""Type alias for tool configuration dictionaries."""


class AbstractTool(ABC):
    """Base class for tools exposed over MCP.

    Subclasses define ``name``, ``description``, ``_operations_path`` and
    ``run``. Operation schemas are read from the YAML file at
    ``_operations_path``.
    """

    _operations_path: Path  # each subclass sets this as a class attribute

    def __init__(self, config: ToolConfig):
        self.config = config
        self._operations_config: dict[str, Any] = load_yaml_config(self._operations_path)

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool identifier."""
        ...

    @property
    @abstractmethod
    def description(self) -> str: ...

    def operations(self) -> list[ToolOperation]:
        """Build tool operations from the YAML config."""
        return [
            ToolOperation(
                name=op_name,
                description=op_config["description"],
                input_schema=self._build_schema(op_config),
            )
            for op_name, op_config in self._operations_config.items()
        ]

    @abstractmethod
    async def run(self, operation: str, **kwargs: Any) -> ToolOperationResult:
        """Execute a tool operation."""
        ...

    def validate(self, operation: str, **kwargs: Any) -> tuple[bool, str | None]:
        """Check the operation's required parameters are present and non-empty."""
        op_config = self._operations_config.get(operation, {})
        for param_name, param_def in (op_config.get("parameters") or {}).items():
            if param_def.get("optional", False):
                continue
            value = kwargs.get(param_name)
            if value is None or (isinstance(value, str) and not value.strip()):
                return False, f"'{param_name}' is required"
        return True, None

    @staticmethod
    def _build_schema(op_config: dict[str, Any]) -> dict[str, Any]:
        """Convert YAML parameter definitions into a JSON Schema object."""
        properties: dict[str, Any] = {}
        required: list[str] = []
        for param_name, param_def in (op_config.get("parameters") or {}).items():
            prop: dict[str, Any] = {"type": param_def["type"]}
            if desc := param_def.get("description"):
                prop["description"] = desc
            if "enum" in param_def:
                prop["enum"] = param_def["enum"]
            properties[param_name] = prop
            if not param_def.get("optional", False):
                required.append(param_name)
        return {"type": "object", "properties": properties, "required": required}
