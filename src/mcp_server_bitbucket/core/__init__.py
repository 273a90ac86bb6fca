"""MCP Bitbucket Server core components"""

from .handlers import ToolArgumentError, ToolContext
from .tools import BitbucketToolRouter, BitbucketTools, ToolDefinition, ToolRegistry

__all__ = [
    "BitbucketToolRouter",
    "BitbucketTools",
    "ToolArgumentError",
    "ToolContext",
    "ToolDefinition",
    "ToolRegistry",
]
