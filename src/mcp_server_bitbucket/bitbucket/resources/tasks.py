"""Pull request task endpoints"""

from typing import Any, List, Optional

from ..client import BitbucketClient
from ..models import PaginatedResponse, Task, TaskState
from ..pagination import DEFAULT_MAX_PAGES, DEFAULT_PAGELEN, get_all_pages
from .base import BaseResource, build_query

DEFAULT_TASKS_COLLECTION = "tasks"


class TasksResource(BaseResource):
    """Tasks attached to a pull request.

    The collection segment under ``/pullrequests/{id}/`` is configurable
    because the upstream task API shape has changed over time.
    """

    def __init__(self, client: BitbucketClient, collection: str = DEFAULT_TASKS_COLLECTION):
        super().__init__(client)
        self._collection = collection

    def _path(self, workspace: str, repo_slug: str, pr_id: int, *segments: Any) -> str:
        return self.repository_path(
            workspace, repo_slug, "pullrequests", pr_id, self._collection, *segments
        )

    async def list(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        page: Optional[int] = None,
        pagelen: Optional[int] = None,
        q: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> PaginatedResponse[Task]:
        path = self._path(workspace, repo_slug, pr_id) + build_query(
            page=page, pagelen=pagelen, q=q, sort=sort
        )
        data = await self._client.get(path)
        return PaginatedResponse[Task].model_validate(data)

    async def list_all(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        q: Optional[str] = None,
        sort: Optional[str] = None,
        pagelen: int = DEFAULT_PAGELEN,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> List[Task]:
        async def fetch_page(page: int, size: int) -> PaginatedResponse[Task]:
            return await self.list(workspace, repo_slug, pr_id, page=page, pagelen=size, q=q, sort=sort)

        return await get_all_pages(fetch_page, pagelen=pagelen, max_pages=max_pages)

    async def get(self, workspace: str, repo_slug: str, pr_id: int, task_id: int) -> Task:
        data = await self._client.get(self._path(workspace, repo_slug, pr_id, task_id))
        return Task.model_validate(data)

    async def create(self, workspace: str, repo_slug: str, pr_id: int, content: str) -> Task:
        data = await self._client.post(
            self._path(workspace, repo_slug, pr_id), {"content": {"raw": content}}
        )
        return Task.model_validate(data)

    async def update(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        task_id: int,
        state: Optional[TaskState] = None,
        content: Optional[str] = None,
    ) -> Task:
        """Change a task's state (RESOLVED/UNRESOLVED) and/or its content."""
        body: dict[str, Any] = {}
        if state is not None:
            body["state"] = state
        if content is not None:
            body["content"] = {"raw": content}

        data = await self._client.put(self._path(workspace, repo_slug, pr_id, task_id), body)
        return Task.model_validate(data)

    async def delete(self, workspace: str, repo_slug: str, pr_id: int, task_id: int) -> None:
        await self._client.delete(self._path(workspace, repo_slug, pr_id, task_id))
