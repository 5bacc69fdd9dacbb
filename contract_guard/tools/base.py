"""Base types and definitions for tools."""

from dataclasses import dataclass
from typing import Any

from langchain_core.tools import BaseTool


@dataclass
class ToolDefinition:
    """A tool exposed to the model.

    Tools that need confirmation are shown to the model like any other, but
    only run once a human approves the call.
    """

    tool: BaseTool
    requires_confirmation: bool = False

    @property
    def name(self) -> str:
        return self.tool.name

    async def execute(self, raw_input: dict[str, Any]) -> Any:
        """Validate input against the tool schema and run it."""
        return await self.tool.ainvoke(raw_input)
