"""Plugin normalization and the tool registry."""

from typing import Any, Dict, List, Mapping, Optional

from ..config.logging import LoggerMixin
from ..core.exceptions import AstreusError, NotFoundError, ValidationError
from .schema import ToolDefinition, ToolResult


def _as_tool(tool: Any) -> ToolDefinition:
    if isinstance(tool, ToolDefinition):
        return tool
    if isinstance(tool, Mapping):
        try:
            return ToolDefinition.model_validate(dict(tool))
        except ValueError as e:
            raise ValidationError(f"Invalid tool definition: {e}", "tool") from e
    raise ValidationError(f"Unsupported tool type: {type(tool).__name__}", "tool")


def normalize_plugin(plugin: Any) -> List[ToolDefinition]:
    """Collapse any supported plugin shape into a flat list of tools.

    Accepted shapes:
    - a ToolDefinition, or a mapping with ``name``/``execute``
    - a tool provider: any object with a ``get_tools()`` method
    - a plain plugin: a mapping or object with a ``tools`` list
    """
    if isinstance(plugin, ToolDefinition):
        return [plugin]

    get_tools = getattr(plugin, "get_tools", None)
    if callable(get_tools):
        return [_as_tool(tool) for tool in get_tools()]

    if isinstance(plugin, Mapping):
        if "tools" in plugin:
            return [_as_tool(tool) for tool in plugin["tools"]]
        return [_as_tool(plugin)]

    tools = getattr(plugin, "tools", None)
    if isinstance(tools, (list, tuple)):
        return [_as_tool(tool) for tool in tools]

    raise ValidationError(f"Unsupported plugin type: {type(plugin).__name__}", "plugin")


class ToolRegistry(LoggerMixin):
    """Name-addressed collection of tools from every registered plugin."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDefinition] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def register(self, plugin: Any) -> List[str]:
        """Register every tool of ``plugin``. Returns the registered names."""
        tools = normalize_plugin(plugin)

        names = [tool.name for tool in tools]
        duplicates = sorted({n for n in names if n in self._tools or names.count(n) > 1})
        if duplicates:
            raise ValidationError(f"Tool already registered: {', '.join(duplicates)}", "name")

        for tool in tools:
            self._tools[tool.name] = tool

        self.logger.info("Plugin registered", tools=names)
        return names

    def unregister(self, name: str) -> bool:
        removed = self._tools.pop(name, None) is not None
        if removed:
            self.logger.info("Tool unregistered", name=name)
        return removed

    def get(self, name: str) -> ToolDefinition:
        tool = self._tools.get(name)
        if tool is None:
            raise NotFoundError(f"Tool not found: {name}", "tool", name)
        return tool

    def list(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def schemas(self) -> List[Dict[str, Any]]:
        return [tool.to_schema() for tool in self._tools.values()]

    async def execute(self, name: str, params: Optional[Dict[str, Any]] = None) -> ToolResult:
        """Validate params, run the tool and report the outcome as a ToolResult."""
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult.fail(f"Tool not found: {name}")

        try:
            validated = tool.validate_params(params)
        except ValidationError as e:
            self.logger.debug("Tool parameters rejected", name=name, error=str(e))
            return ToolResult.fail(e.message)

        try:
            output = await tool.run(validated)
        except AstreusError as e:
            self.logger.warning("Tool failed", name=name, error=str(e))
            return ToolResult.fail(e.message)
        except Exception as e:
            self.logger.error("Tool raised an unexpected error", name=name, error=str(e))
            return ToolResult.fail(f"{type(e).__name__}: {e}")

        if isinstance(output, ToolResult):
            return output
        return ToolResult.ok(output)
