"""Bitbucket API facade bundling the client and its resource endpoints"""

import logging
from typing import Optional

import aiohttp

from .client import BitbucketClient, ClientConfig
from .resources import (
    DEFAULT_TASKS_COLLECTION,
    BranchesResource,
    CommentsResource,
    PullRequestsResource,
    TasksResource,
)

logger = logging.getLogger(__name__)


class BitbucketAPI:
    """Entry point exposing ``pull_requests``, ``comments``, ``tasks`` and ``branches``.

    All resources share one ``BitbucketClient``; close the API (or use it as an
    async context manager) to release the HTTP session.
    """

    def __init__(
        self,
        config: ClientConfig,
        tasks_collection: str = DEFAULT_TASKS_COLLECTION,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.client = BitbucketClient(config, session=session)
        self.pull_requests = PullRequestsResource(self.client)
        self.comments = CommentsResource(self.client)
        self.tasks = TasksResource(self.client, collection=tasks_collection)
        self.branches = BranchesResource(self.client)
        logger.debug(f"Bitbucket API client configured for {self.client.base_url}")

    async def __aenter__(self) -> "BitbucketAPI":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.close()
