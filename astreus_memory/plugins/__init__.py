"""Agent tool contract: parameter schemas, tool registry and built-in providers."""

from .memory_tools import MemoryToolProvider
from .rag_tools import RAGToolProvider
from .registry import ToolRegistry, normalize_plugin
from .schema import (
    ArrayParameter,
    BooleanParameter,
    NumberParameter,
    ObjectParameter,
    ParameterSchema,
    StringParameter,
    ToolDefinition,
    ToolResult,
)

__all__ = [
    "ParameterSchema",
    "StringParameter",
    "NumberParameter",
    "BooleanParameter",
    "ArrayParameter",
    "ObjectParameter",
    "ToolDefinition",
    "ToolResult",
    "ToolRegistry",
    "normalize_plugin",
    "MemoryToolProvider",
    "RAGToolProvider",
]
