"""Tools registry for the contract review assistant."""

from langchain_core.tools import BaseTool

from contract_guard.services.tool_calls import ToolExecutor, ToolRegistry
from contract_guard.tools.attorney_review import request_attorney_review
from contract_guard.tools.base import ToolDefinition
from contract_guard.tools.clauses import lookup_clause, scan_risk_terms


class ToolsRegistry:
    """Registry for managing assistant tools."""

    def __init__(self, register_defaults: bool = True):
        """Initialize tools registry."""
        self._tools: dict[str, ToolDefinition] = {}
        if register_defaults:
            self._register_default_tools()

    def _register_default_tools(self) -> None:
        """Register the default set of contract review tools."""
        tools = [
            ToolDefinition(lookup_clause),
            ToolDefinition(scan_risk_terms),
            ToolDefinition(request_attorney_review, requires_confirmation=True),
        ]

        for tool in tools:
            self.register_tool(tool)

    def register_tool(self, tool: ToolDefinition) -> None:
        """Register a new tool in the registry."""
        self._tools[tool.name] = tool

    def get_langchain_tools(self) -> list[BaseTool]:
        """All tools, for binding to the model."""
        return [definition.tool for definition in self._tools.values()]

    def get_auto_tools(self) -> list[BaseTool]:
        """Tools that run without asking the user."""
        return [definition.tool for definition in self._tools.values() if not definition.requires_confirmation]

    def auto_executors(self) -> ToolRegistry:
        """Reconciliation registry: auto tools map to a handler, the rest to None."""
        return {
            name: (None if definition.requires_confirmation else definition.execute)
            for name, definition in self._tools.items()
        }

    def confirmation_executors(self) -> dict[str, ToolExecutor]:
        """Handlers that run once a human approves the call."""
        return {name: definition.execute for name, definition in self._tools.items() if definition.requires_confirmation}


_tools_registry: ToolsRegistry | None = None


def get_tools_registry() -> ToolsRegistry:
    """Get or create tools registry instance."""
    global _tools_registry
    if _tools_registry is None:
        _tools_registry = ToolsRegistry()
    return _tools_registry
