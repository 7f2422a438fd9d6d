from .base import Tool, ToolRegistry
from .document_retention_tool import DocumentRetentionArgs, DocumentRetentionTool
from .document_search_tool import DocumentSearchArgs, DocumentSearchTool
from .web_search_tool import WebSearchArgs, WebSearchTool

__all__ = [
    "Tool",
    "ToolRegistry",
    "DocumentRetentionArgs",
    "DocumentRetentionTool",
    "DocumentSearchArgs",
    "DocumentSearchTool",
    "WebSearchArgs",
    "WebSearchTool",
]
