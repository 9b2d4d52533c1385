from dataclasses import dataclass
from typing import Any


@dataclass
class ToolOperation:
    name: str
    description: str
    input_schema: dict[str, Any]


@dataclass
class ToolOperationResult:
    content: str
    success: bool = True
