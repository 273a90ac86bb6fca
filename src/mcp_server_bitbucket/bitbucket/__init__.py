"""Bitbucket Cloud API client for MCP Bitbucket Server"""

from .api import BitbucketAPI
from .auth import AuthHandler, Credentials
from .client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_MS, BitbucketClient, ClientConfig
from .errors import (
    BitbucketError,
    ErrorKind,
    classify_http_error,
    extract_error_message,
)
from .models import (
    Branch,
    Comment,
    Commit,
    PaginatedResponse,
    PullRequest,
    Task,
    User,
)
from .pagination import extract_page_from_url, get_all_pages

__all__ = [
    "BitbucketAPI",
    "BitbucketClient",
    "ClientConfig",
    "Credentials",
    "AuthHandler",
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT_MS",
    # Errors
    "BitbucketError",
    "ErrorKind",
    "classify_http_error",
    "extract_error_message",
    # Pagination
    "get_all_pages",
    "extract_page_from_url",
    # Models
    "Branch",
    "Comment",
    "Commit",
    "PaginatedResponse",
    "PullRequest",
    "Task",
    "User",
]
