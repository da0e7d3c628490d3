"""
Tool Catalog
The closed set of tools offered to the model and the name → executor table.
"""
from enum import Enum
from typing import Dict, List, Optional

from .base import BaseTool, ToolResult
from .browse_page import BrowsePageTool
from .web_search import WebSearchTool
from .x_search import XKeywordSearchTool
from ..errors import UnknownToolError
from ..providers.base import ToolCall, ToolDefinition


class ToolName(str, Enum):
    WEB_SEARCH = "web_search"
    X_KEYWORD_SEARCH = "x_keyword_search"
    BROWSE_PAGE = "browse_page"


class ToolCatalog:
    """Dispatch table keyed by ToolName; every name must have an executor."""

    def __init__(self, tools: Dict[ToolName, BaseTool]):
        missing = set(ToolName) - set(tools)
        if missing:
            raise ValueError(f"No executor for tools: {sorted(t.value for t in missing)}")
        for tool_name, tool in tools.items():
            if tool.name != tool_name.value:
                raise ValueError(f"Executor '{tool.name}' registered as '{tool_name.value}'")
        self._tools = dict(tools)

    def get(self, tool_name: ToolName) -> BaseTool:
        return self._tools[tool_name]

    def definitions(self) -> List[ToolDefinition]:
        """Tool definitions for the LLM, in enum order"""
        return [ToolDefinition(**self._tools[name].to_definition()) for name in ToolName]

    def resolve(self, name: str) -> ToolName:
        try:
            return ToolName(name)
        except ValueError:
            raise UnknownToolError(name) from None

    async def dispatch(self, call: ToolCall) -> ToolResult:
        """
        Run one model-requested call.

        Raises:
            UnknownToolError: the name is not in the catalog
            MalformedToolArgumentsError: arguments are not valid for the tool
            UpstreamError: the tool's backing service failed
        """
        tool = self._tools[self.resolve(call.name)]
        return await tool.execute(**call.parsed_arguments())


def create_default_catalog(
    web_search: Optional[WebSearchTool] = None,
    x_keyword_search: Optional[XKeywordSearchTool] = None,
    browse_page: Optional[BrowsePageTool] = None,
) -> ToolCatalog:
    """Catalog with the standard executors, any of which can be replaced."""
    return ToolCatalog({
        ToolName.WEB_SEARCH: web_search or WebSearchTool(),
        ToolName.X_KEYWORD_SEARCH: x_keyword_search or XKeywordSearchTool(),
        ToolName.BROWSE_PAGE: browse_page or BrowsePageTool(),
    })
