"""Input schemas for the Bitbucket tools.

Schemas are plain JSON-schema dicts so that identifiers keep the exact wire
types clients already rely on (``number`` for ids, ``string`` for slugs).
"""

from typing import Any, Dict, List, Optional

_WORKSPACE = {"type": "string", "description": "Bitbucket workspace ID"}
_REPO_SLUG = {"type": "string", "description": "Repository slug"}
_PR_ID = {"type": "number", "description": "Pull request ID"}
_PAGELEN = {"type": "number", "description": "Number of items per page (default: 50)"}


def _object_schema(properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {"workspace": dict(_WORKSPACE), "repo_slug": dict(_REPO_SLUG), **properties},
        "required": ["workspace", "repo_slug", *required],
    }


def _string(description: str, enum: Optional[List[str]] = None) -> Dict[str, Any]:
    prop: Dict[str, Any] = {"type": "string"}
    if enum is not None:
        prop["enum"] = list(enum)
    prop["description"] = description
    return prop


def _number(description: str) -> Dict[str, Any]:
    return {"type": "number", "description": description}


# Pull requests

LIST_PULL_REQUESTS = _object_schema(
    {
        "state": _string(
            "Filter by PR state (optional)",
            enum=["OPEN", "MERGED", "DECLINED", "SUPERSEDED"],
        ),
        "pagelen": dict(_PAGELEN),
    },
    required=[],
)

GET_PULL_REQUEST = _object_schema({"pr_id": dict(_PR_ID)}, required=["pr_id"])

GET_PR_COMMITS = _object_schema({"pr_id": dict(_PR_ID)}, required=["pr_id"])

GET_PR_DIFF = _object_schema({"pr_id": dict(_PR_ID)}, required=["pr_id"])

# Comments

LIST_PR_COMMENTS = _object_schema({"pr_id": dict(_PR_ID)}, required=["pr_id"])

GET_COMMENT = _object_schema(
    {"pr_id": dict(_PR_ID), "comment_id": _number("Comment ID")},
    required=["pr_id", "comment_id"],
)

CREATE_COMMENT = _object_schema(
    {"pr_id": dict(_PR_ID), "content": _string("Comment content (markdown supported)")},
    required=["pr_id", "content"],
)

DELETE_COMMENT = _object_schema(
    {"pr_id": dict(_PR_ID), "comment_id": _number("Comment ID to delete")},
    required=["pr_id", "comment_id"],
)

# Tasks

LIST_PR_TASKS = _object_schema({"pr_id": dict(_PR_ID)}, required=["pr_id"])

GET_TASK = _object_schema(
    {"pr_id": dict(_PR_ID), "task_id": _number("Task ID")},
    required=["pr_id", "task_id"],
)

CREATE_TASK = _object_schema(
    {"pr_id": dict(_PR_ID), "content": _string("Task content/description")},
    required=["pr_id", "content"],
)

UPDATE_TASK = _object_schema(
    {
        "pr_id": dict(_PR_ID),
        "task_id": _number("Task ID to update"),
        "state": _string("New task state", enum=["RESOLVED", "UNRESOLVED"]),
    },
    required=["pr_id", "task_id", "state"],
)

# Branches

LIST_BRANCHES = _object_schema({"pagelen": dict(_PAGELEN)}, required=[])

GET_BRANCH = _object_schema({"branch_name": _string("Branch name")}, required=["branch_name"])

CREATE_BRANCH = _object_schema(
    {
        "branch_name": _string("New branch name"),
        "target_hash": _string("Commit hash to branch from"),
    },
    required=["branch_name", "target_hash"],
)
