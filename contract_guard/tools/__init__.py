"""Tools for the contract review assistant."""

from contract_guard.tools.registry import ToolsRegistry, get_tools_registry

__all__ = ["ToolsRegistry", "get_tools_registry"]
