"""Pull request endpoints"""

from typing import Any, List, Optional

from ..models import Commit, MergeStrategy, PaginatedResponse, PullRequest, PullRequestState
from ..pagination import DEFAULT_MAX_PAGES, DEFAULT_PAGELEN, get_all_pages
from .base import BaseResource, build_query


class PullRequestsResource(BaseResource):
    """Pull requests of a repository."""

    async def list(
        self,
        workspace: str,
        repo_slug: str,
        state: Optional[PullRequestState] = None,
        page: Optional[int] = None,
        pagelen: Optional[int] = None,
        q: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> PaginatedResponse[PullRequest]:
        """List one page of pull requests, optionally filtered by state or query."""
        path = self.repository_path(workspace, repo_slug, "pullrequests") + build_query(
            page=page, pagelen=pagelen, state=state, q=q, sort=sort
        )
        data = await self._client.get(path)
        return PaginatedResponse[PullRequest].model_validate(data)

    async def list_all(
        self,
        workspace: str,
        repo_slug: str,
        state: Optional[PullRequestState] = None,
        q: Optional[str] = None,
        sort: Optional[str] = None,
        pagelen: int = DEFAULT_PAGELEN,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> List[PullRequest]:
        """Drain every page of ``list`` up to ``max_pages``."""

        async def fetch_page(page: int, size: int) -> PaginatedResponse[PullRequest]:
            return await self.list(
                workspace, repo_slug, state=state, page=page, pagelen=size, q=q, sort=sort
            )

        return await get_all_pages(fetch_page, pagelen=pagelen, max_pages=max_pages)

    async def get(self, workspace: str, repo_slug: str, pr_id: int) -> PullRequest:
        data = await self._client.get(self.repository_path(workspace, repo_slug, "pullrequests", pr_id))
        return PullRequest.model_validate(data)

    async def create(
        self,
        workspace: str,
        repo_slug: str,
        title: str,
        source_branch: str,
        destination_branch: str,
        description: Optional[str] = None,
        reviewers: Optional[List[str]] = None,
        close_source_branch: Optional[bool] = None,
    ) -> PullRequest:
        """Open a pull request from ``source_branch`` into ``destination_branch``.

        ``reviewers`` is a list of user UUIDs.
        """
        body: dict[str, Any] = {
            "title": title,
            "source": {"branch": {"name": source_branch}},
            "destination": {"branch": {"name": destination_branch}},
        }
        if description is not None:
            body["description"] = description
        if reviewers is not None:
            body["reviewers"] = [{"uuid": uuid} for uuid in reviewers]
        if close_source_branch is not None:
            body["close_source_branch"] = close_source_branch

        data = await self._client.post(self.repository_path(workspace, repo_slug, "pullrequests"), body)
        return PullRequest.model_validate(data)

    async def update(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        reviewers: Optional[List[str]] = None,
        close_source_branch: Optional[bool] = None,
    ) -> PullRequest:
        body: dict[str, Any] = {}
        if title is not None:
            body["title"] = title
        if description is not None:
            body["description"] = description
        if reviewers is not None:
            body["reviewers"] = [{"uuid": uuid} for uuid in reviewers]
        if close_source_branch is not None:
            body["close_source_branch"] = close_source_branch

        data = await self._client.put(
            self.repository_path(workspace, repo_slug, "pullrequests", pr_id), body
        )
        return PullRequest.model_validate(data)

    async def decline(self, workspace: str, repo_slug: str, pr_id: int) -> PullRequest:
        data = await self._client.post(
            self.repository_path(workspace, repo_slug, "pullrequests", pr_id, "decline")
        )
        return PullRequest.model_validate(data)

    async def approve(self, workspace: str, repo_slug: str, pr_id: int) -> None:
        await self._client.post(self.repository_path(workspace, repo_slug, "pullrequests", pr_id, "approve"))

    async def unapprove(self, workspace: str, repo_slug: str, pr_id: int) -> None:
        await self._client.delete(self.repository_path(workspace, repo_slug, "pullrequests", pr_id, "approve"))

    async def merge(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        message: Optional[str] = None,
        close_source_branch: Optional[bool] = None,
        merge_strategy: Optional[MergeStrategy] = None,
    ) -> PullRequest:
        """Merge a pull request; sends no body when no option is given."""
        options: dict[str, Any] = {}
        if message is not None:
            options["message"] = message
        if close_source_branch is not None:
            options["close_source_branch"] = close_source_branch
        if merge_strategy is not None:
            options["merge_strategy"] = merge_strategy

        data = await self._client.post(
            self.repository_path(workspace, repo_slug, "pullrequests", pr_id, "merge"),
            options or None,
        )
        return PullRequest.model_validate(data)

    async def get_commits(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        page: Optional[int] = None,
        pagelen: Optional[int] = None,
    ) -> PaginatedResponse[Commit]:
        path = self.repository_path(workspace, repo_slug, "pullrequests", pr_id, "commits") + build_query(
            page=page, pagelen=pagelen
        )
        data = await self._client.get(path)
        return PaginatedResponse[Commit].model_validate(data)

    async def get_diff(self, workspace: str, repo_slug: str, pr_id: int) -> str:
        """Return the unified diff of a pull request as text."""
        data = await self._client.get(self.repository_path(workspace, repo_slug, "pullrequests", pr_id, "diff"))
        return data or ""

    async def get_patch(self, workspace: str, repo_slug: str, pr_id: int) -> str:
        data = await self._client.get(self.repository_path(workspace, repo_slug, "pullrequests", pr_id, "patch"))
        return data or ""
