"""Tool registry and routing system for MCP Bitbucket Server"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from mcp.types import CallToolResult, TextContent, Tool

from ..logging_config import error_context
from . import handlers, schemas
from .handlers import ToolContext

logger = logging.getLogger(__name__)

ToolHandler = Callable[[ToolContext, Mapping[str, Any]], Awaitable[str]]


class BitbucketTools(str, Enum):
    """Enumeration of all available Bitbucket tools"""
    # Pull requests
    LIST_PULL_REQUESTS = "bitbucket_list_pull_requests"
    GET_PULL_REQUEST = "bitbucket_get_pull_request"
    GET_PR_COMMITS = "bitbucket_get_pr_commits"
    GET_PR_DIFF = "bitbucket_get_pr_diff"

    # Comments
    LIST_PR_COMMENTS = "bitbucket_list_pr_comments"
    GET_COMMENT = "bitbucket_get_comment"
    CREATE_COMMENT = "bitbucket_create_comment"
    DELETE_COMMENT = "bitbucket_delete_comment"

    # Tasks
    LIST_PR_TASKS = "bitbucket_list_pr_tasks"
    GET_TASK = "bitbucket_get_task"
    CREATE_TASK = "bitbucket_create_task"
    UPDATE_TASK = "bitbucket_update_task"

    # Branches
    LIST_BRANCHES = "bitbucket_list_branches"
    GET_BRANCH = "bitbucket_get_branch"
    CREATE_BRANCH = "bitbucket_create_branch"


@dataclass
class ToolDefinition:
    """Complete tool definition with metadata"""
    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: ToolHandler


class ToolRegistry:
    """Central registry for all MCP Bitbucket Server tools"""

    def __init__(self):
        self.tools: Dict[str, ToolDefinition] = {}
        self._initialized = False

    def register(self, tool_def: ToolDefinition):
        """Register a tool in the registry"""
        self.tools[tool_def.name] = tool_def
        logger.debug(f"Registered tool: {tool_def.name}")

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        """Get tool definition by name"""
        return self.tools.get(name)

    def list_tools(self) -> List[Tool]:
        """Get all tools as MCP Tool objects"""
        return [
            Tool(
                name=tool_def.name,
                description=tool_def.description,
                inputSchema=tool_def.input_schema,
            )
            for tool_def in self.tools.values()
        ]

    def validate(self):
        """Check that every declared tool name is registered and nothing else is.

        Raises:
            RuntimeError: if the registry and ``BitbucketTools`` disagree.
        """
        declared = {tool.value for tool in BitbucketTools}
        registered = set(self.tools)
        missing = sorted(declared - registered)
        unknown = sorted(registered - declared)
        if missing or unknown:
            raise RuntimeError(
                f"Tool registry mismatch: missing={missing} unknown={unknown}"
            )

    def initialize_default_tools(self):
        """Initialize registry with the Bitbucket tool catalog"""
        if self._initialized:
            return

        default_tools = [
            # Pull request tools
            ToolDefinition(
                name=BitbucketTools.LIST_PULL_REQUESTS.value,
                description=(
                    "List pull requests for a Bitbucket repository. "
                    "Returns PR titles, IDs, states, authors, and descriptions."
                ),
                input_schema=schemas.LIST_PULL_REQUESTS,
                handler=handlers.list_pull_requests,
            ),
            ToolDefinition(
                name=BitbucketTools.GET_PULL_REQUEST.value,
                description=(
                    "Get detailed information about a specific pull request including "
                    "description, reviewers, participants, and status."
                ),
                input_schema=schemas.GET_PULL_REQUEST,
                handler=handlers.get_pull_request,
            ),
            ToolDefinition(
                name=BitbucketTools.GET_PR_COMMITS.value,
                description="Get the list of commits included in a pull request.",
                input_schema=schemas.GET_PR_COMMITS,
                handler=handlers.get_pr_commits,
            ),
            ToolDefinition(
                name=BitbucketTools.GET_PR_DIFF.value,
                description="Get the diff for a pull request showing all code changes.",
                input_schema=schemas.GET_PR_DIFF,
                handler=handlers.get_pr_diff,
            ),
            # Comment tools
            ToolDefinition(
                name=BitbucketTools.LIST_PR_COMMENTS.value,
                description="List all comments on a pull request.",
                input_schema=schemas.LIST_PR_COMMENTS,
                handler=handlers.list_pr_comments,
            ),
            ToolDefinition(
                name=BitbucketTools.GET_COMMENT.value,
                description="Get a specific comment by ID.",
                input_schema=schemas.GET_COMMENT,
                handler=handlers.get_comment,
            ),
            ToolDefinition(
                name=BitbucketTools.CREATE_COMMENT.value,
                description="Create a new comment on a pull request. Supports markdown formatting.",
                input_schema=schemas.CREATE_COMMENT,
                handler=handlers.create_comment,
            ),
            ToolDefinition(
                name=BitbucketTools.DELETE_COMMENT.value,
                description="Delete a comment from a pull request.",
                input_schema=schemas.DELETE_COMMENT,
                handler=handlers.delete_comment,
            ),
            # Task tools
            ToolDefinition(
                name=BitbucketTools.LIST_PR_TASKS.value,
                description="List all tasks on a pull request.",
                input_schema=schemas.LIST_PR_TASKS,
                handler=handlers.list_pr_tasks,
            ),
            ToolDefinition(
                name=BitbucketTools.GET_TASK.value,
                description="Get a specific task by ID.",
                input_schema=schemas.GET_TASK,
                handler=handlers.get_task,
            ),
            ToolDefinition(
                name=BitbucketTools.CREATE_TASK.value,
                description="Create a new task on a pull request.",
                input_schema=schemas.CREATE_TASK,
                handler=handlers.create_task,
            ),
            ToolDefinition(
                name=BitbucketTools.UPDATE_TASK.value,
                description="Update a task state (RESOLVED or UNRESOLVED) or content.",
                input_schema=schemas.UPDATE_TASK,
                handler=handlers.update_task,
            ),
            # Branch tools
            ToolDefinition(
                name=BitbucketTools.LIST_BRANCHES.value,
                description="List all branches in a repository.",
                input_schema=schemas.LIST_BRANCHES,
                handler=handlers.list_branches,
            ),
            ToolDefinition(
                name=BitbucketTools.GET_BRANCH.value,
                description="Get details of a specific branch.",
                input_schema=schemas.GET_BRANCH,
                handler=handlers.get_branch,
            ),
            ToolDefinition(
                name=BitbucketTools.CREATE_BRANCH.value,
                description="Create a new branch from a specific commit.",
                input_schema=schemas.CREATE_BRANCH,
                handler=handlers.create_branch,
            ),
        ]

        for tool_def in default_tools:
            self.register(tool_def)

        self._initialized = True
        logger.info(f"Initialized {len(self.tools)} tools")


def error_result(message: str) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=f"Error: {message}")], isError=True)


class BitbucketToolRouter:
    """Router for dispatching tool calls to their handlers"""

    def __init__(self, registry: ToolRegistry, context: ToolContext):
        self.registry = registry
        self.context = context

    async def route_tool_call(
        self,
        name: str,
        arguments: Optional[Mapping[str, Any]],
        request_id: Optional[Any] = None,
    ) -> CallToolResult:
        """Route a tool call to the appropriate handler.

        Never raises: handler and API failures come back as an error result.
        """
        tool_def = self.registry.get_tool(name)
        if tool_def is None:
            logger.warning(f"Unknown tool requested: {name}", extra={"tool": name, "request_id": request_id})
            return error_result(f"Unknown tool: {name}")

        start = time.perf_counter()
        try:
            text = await tool_def.handler(self.context, arguments or {})
        except Exception as e:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.error(
                f"Tool call failed for {name}: {e}",
                extra={
                    "tool": name,
                    "request_id": request_id,
                    "duration_ms": duration_ms,
                    **error_context(e),
                },
            )
            return error_result(str(e))

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.debug(
            f"Tool call completed for {name}",
            extra={"tool": name, "request_id": request_id, "duration_ms": duration_ms},
        )
        return CallToolResult(content=[TextContent(type="text", text=text)])
