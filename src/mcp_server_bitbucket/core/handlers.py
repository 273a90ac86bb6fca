"""Tool call handlers for MCP Bitbucket Server

Each handler takes the shared ``ToolContext`` and the raw argument mapping of
a tool call, resolves workspace/repository defaults, validates identifiers
before touching the network and returns the text sent back to the client.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

from ..bitbucket.api import BitbucketAPI
from ..bitbucket.models import Branch, Comment, PullRequest, Task
from ..config import ServerConfig

logger = logging.getLogger(__name__)

PULL_REQUEST_STATES = ("OPEN", "MERGED", "DECLINED", "SUPERSEDED")
TASK_STATES = ("RESOLVED", "UNRESOLVED")


class ToolArgumentError(ValueError):
    """A tool call was missing an argument or carried an invalid one."""


@dataclass(frozen=True)
class ToolContext:
    """Everything a handler needs: the API client and the server configuration."""

    api: BitbucketAPI
    config: ServerConfig


# Argument helpers


def _resolve_repository(context: ToolContext, arguments: Mapping[str, Any]) -> tuple[str, str]:
    workspace = arguments.get("workspace") or context.config.workspace
    repo_slug = arguments.get("repo_slug") or context.config.default_repo
    if not repo_slug:
        raise ToolArgumentError("repo_slug is required")
    return str(workspace), str(repo_slug)


def _coerce_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ToolArgumentError(f"{name} must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    raise ToolArgumentError(f"{name} must be a number")


def _require_id(arguments: Mapping[str, Any], name: str) -> int:
    value = arguments.get(name)
    if value is None or value == "":
        raise ToolArgumentError(f"{name} is required")
    number = _coerce_int(name, value)
    if number == 0:
        raise ToolArgumentError(f"{name} is required")
    return number


def _optional_int(arguments: Mapping[str, Any], name: str) -> Optional[int]:
    value = arguments.get(name)
    if value is None or value == "":
        return None
    return _coerce_int(name, value)


def _require_text(arguments: Mapping[str, Any], name: str) -> str:
    value = arguments.get(name)
    if not value:
        raise ToolArgumentError(f"{name} is required")
    return str(value)


def _check_choice(name: str, value: str, choices: Sequence[str]) -> str:
    if value not in choices:
        raise ToolArgumentError(f"{name} must be one of {', '.join(choices)}")
    return value


def _to_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


# Projections


def _pull_request_summary(pr: PullRequest) -> Dict[str, Any]:
    return {
        "id": pr.id,
        "title": pr.title,
        "state": pr.state,
        "author": pr.author.display_name,
        "created_on": pr.created_on,
        "updated_on": pr.updated_on,
        "source_branch": pr.source.branch.name,
        "destination_branch": pr.destination.branch.name,
        "comment_count": pr.comment_count,
        "task_count": pr.task_count,
    }


def _inline_projection(comment: Comment) -> Optional[Dict[str, Any]]:
    if comment.inline is None:
        return None
    return {"path": comment.inline.path, "from": comment.inline.from_, "to": comment.inline.to}


def _task_projection(task: Task) -> Dict[str, Any]:
    return {
        "id": task.id,
        "content": task.content.raw,
        "state": task.state,
        "creator": task.creator.display_name,
        "created_on": task.created_on,
        "updated_on": task.updated_on,
    }


def _branch_projection(branch: Branch) -> Dict[str, Any]:
    return {
        "name": branch.name,
        "target": {
            "hash": branch.target.hash,
            "date": branch.target.date,
            "author": branch.target.author.name,
            "message": branch.target.message,
        },
    }


# Pull requests


async def list_pull_requests(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    state = arguments.get("state") or None
    if state is not None:
        state = _check_choice("state", str(state), PULL_REQUEST_STATES)
    pagelen = _optional_int(arguments, "pagelen")

    response = await context.api.pull_requests.list(workspace, repo_slug, state=state, pagelen=pagelen)
    return _to_json(
        {
            "total": response.size,
            "pull_requests": [_pull_request_summary(pr) for pr in response.values],
        }
    )


async def get_pull_request(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    pr_id = _require_id(arguments, "pr_id")

    pr = await context.api.pull_requests.get(workspace, repo_slug, pr_id)
    details = _pull_request_summary(pr)
    details["description"] = pr.description
    details["reviewers"] = [reviewer.display_name for reviewer in pr.reviewers]
    details["participants"] = [
        {"name": participant.user.display_name, "role": participant.role, "approved": participant.approved}
        for participant in pr.participants
    ]
    return _to_json(details)


async def get_pr_commits(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    pr_id = _require_id(arguments, "pr_id")

    response = await context.api.pull_requests.get_commits(workspace, repo_slug, pr_id)
    commits = [
        {
            "hash": commit.hash,
            "message": commit.message,
            "author": commit.author.raw,
            "date": commit.date,
        }
        for commit in response.values
    ]
    return _to_json({"total": response.size, "commits": commits})


async def get_pr_diff(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    pr_id = _require_id(arguments, "pr_id")

    return await context.api.pull_requests.get_diff(workspace, repo_slug, pr_id)


# Comments


async def list_pr_comments(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    pr_id = _require_id(arguments, "pr_id")

    response = await context.api.comments.list(workspace, repo_slug, pr_id)
    comments = []
    for comment in response.values:
        entry = {
            "id": comment.id,
            "content": comment.content.raw,
            "author": comment.user.display_name,
            "created_on": comment.created_on,
            "updated_on": comment.updated_on,
            "deleted": comment.deleted,
        }
        inline = _inline_projection(comment)
        if inline is not None:
            entry["inline"] = inline
        comments.append(entry)
    return _to_json({"total": response.size, "comments": comments})


async def get_comment(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    pr_id = _require_id(arguments, "pr_id")
    comment_id = _require_id(arguments, "comment_id")

    comment = await context.api.comments.get(workspace, repo_slug, pr_id, comment_id)
    details = {
        "id": comment.id,
        "content": {"raw": comment.content.raw, "html": comment.content.html},
        "author": comment.user.display_name,
        "created_on": comment.created_on,
        "updated_on": comment.updated_on,
        "deleted": comment.deleted,
    }
    inline = _inline_projection(comment)
    if inline is not None:
        details["inline"] = inline
    return _to_json(details)


async def create_comment(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    pr_id = _require_id(arguments, "pr_id")
    content = _require_text(arguments, "content")

    comment = await context.api.comments.create(workspace, repo_slug, pr_id, content)
    return f"Comment created successfully with ID {comment.id}"


async def delete_comment(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    pr_id = _require_id(arguments, "pr_id")
    comment_id = _require_id(arguments, "comment_id")

    await context.api.comments.delete(workspace, repo_slug, pr_id, comment_id)
    return f"Comment {comment_id} deleted successfully"


# Tasks


async def list_pr_tasks(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    pr_id = _require_id(arguments, "pr_id")

    response = await context.api.tasks.list(workspace, repo_slug, pr_id)
    return _to_json({"total": response.size, "tasks": [_task_projection(task) for task in response.values]})


async def get_task(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    pr_id = _require_id(arguments, "pr_id")
    task_id = _require_id(arguments, "task_id")

    task = await context.api.tasks.get(workspace, repo_slug, pr_id, task_id)
    return _to_json(_task_projection(task))


async def create_task(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    pr_id = _require_id(arguments, "pr_id")
    content = _require_text(arguments, "content")

    task = await context.api.tasks.create(workspace, repo_slug, pr_id, content)
    return f"Task created successfully with ID {task.id}"


async def update_task(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    pr_id = _require_id(arguments, "pr_id")
    task_id = _require_id(arguments, "task_id")
    state = _check_choice("state", _require_text(arguments, "state"), TASK_STATES)

    await context.api.tasks.update(workspace, repo_slug, pr_id, task_id, state=state)
    return f"Task {task_id} updated to {state}"


# Branches


async def list_branches(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    pagelen = _optional_int(arguments, "pagelen")

    response = await context.api.branches.list(workspace, repo_slug, pagelen=pagelen)
    return _to_json(
        {
            "total": response.size,
            "branches": [_branch_projection(branch) for branch in response.values],
        }
    )


async def get_branch(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    branch_name = _require_text(arguments, "branch_name")

    branch = await context.api.branches.get(workspace, repo_slug, branch_name)
    details = _branch_projection(branch)
    details["default_merge_strategy"] = branch.default_merge_strategy
    details["merge_strategies"] = branch.merge_strategies
    return _to_json(details)


async def create_branch(context: ToolContext, arguments: Mapping[str, Any]) -> str:
    workspace, repo_slug = _resolve_repository(context, arguments)
    branch_name = _require_text(arguments, "branch_name")
    target_hash = _require_text(arguments, "target_hash")

    branch = await context.api.branches.create(workspace, repo_slug, branch_name, target_hash)
    logger.info(f"Created branch {branch.name} in {workspace}/{repo_slug}")
    return f"Branch '{branch.name}' created successfully at commit {branch.target.hash}"
