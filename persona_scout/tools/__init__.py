"""Tools module initialization"""
from .base import BaseTool, ToolResult
from .models import SearchResult, SocialPost, PageContent
from .web_search import WebSearchTool
from .x_search import XKeywordSearchTool
from .browse_page import BrowsePageTool
from .catalog import ToolName, ToolCatalog, create_default_catalog

__all__ = [
    "BaseTool",
    "ToolResult",
    "SearchResult",
    "SocialPost",
    "PageContent",
    "WebSearchTool",
    "XKeywordSearchTool",
    "BrowsePageTool",
    "ToolName",
    "ToolCatalog",
    "create_default_catalog",
]
