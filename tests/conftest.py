"""
Global pytest configuration and fixtures for the Bitbucket MCP server tests.

This file provides:
1. A ready-made ServerConfig and ClientConfig for tests
2. A mocked BitbucketAPI whose resource methods are AsyncMocks
3. The Bitbucket payload factory (see fixtures/bitbucket_responses.py)
"""

from typing import Dict
from unittest.mock import AsyncMock, MagicMock

import pytest

from fixtures.bitbucket_responses import BitbucketResponseFactory
from mcp_server_bitbucket.bitbucket.auth import Credentials
from mcp_server_bitbucket.bitbucket.client import ClientConfig
from mcp_server_bitbucket.config import ServerConfig
from mcp_server_bitbucket.core.handlers import ToolContext

RESOURCE_METHODS: Dict[str, tuple] = {
    "pull_requests": (
        "list", "list_all", "get", "create", "update", "decline", "approve",
        "unapprove", "merge", "get_commits", "get_diff", "get_patch",
    ),
    "comments": ("list", "list_all", "get", "create", "update", "delete"),
    "tasks": ("list", "list_all", "get", "create", "update", "delete"),
    "branches": ("list", "list_all", "get", "create", "delete"),
}


@pytest.fixture
def responses() -> type:
    """Bitbucket wire-format payload factory."""
    return BitbucketResponseFactory


@pytest.fixture
def server_config() -> ServerConfig:
    return ServerConfig(
        workspace="test-workspace",
        username="testuser",
        app_password="app-secret",
        default_repo="test-repo",
    )


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(credentials=Credentials(username="testuser", app_password="app-secret"))


@pytest.fixture
def mock_api() -> MagicMock:
    """A BitbucketAPI stand-in whose resource methods are all AsyncMocks."""
    api = MagicMock()
    for resource_name, methods in RESOURCE_METHODS.items():
        resource = MagicMock()
        for method in methods:
            setattr(resource, method, AsyncMock())
        setattr(api, resource_name, resource)
    api.close = AsyncMock()
    return api


@pytest.fixture
def tool_context(mock_api: MagicMock, server_config: ServerConfig) -> ToolContext:
    return ToolContext(api=mock_api, config=server_config)
