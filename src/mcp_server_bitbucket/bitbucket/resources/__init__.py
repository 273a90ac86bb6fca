"""Bitbucket resource endpoints"""

from .branches import BranchesResource
from .comments import CommentsResource
from .pullrequests import PullRequestsResource
from .tasks import DEFAULT_TASKS_COLLECTION, TasksResource

__all__ = [
    "BranchesResource",
    "CommentsResource",
    "PullRequestsResource",
    "TasksResource",
    "DEFAULT_TASKS_COLLECTION",
]
