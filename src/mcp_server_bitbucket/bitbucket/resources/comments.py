"""Pull request comment endpoints"""

from typing import Any, List, Optional

from ..models import Comment, PaginatedResponse
from ..pagination import DEFAULT_MAX_PAGES, DEFAULT_PAGELEN, get_all_pages
from .base import BaseResource, build_query


class CommentsResource(BaseResource):
    """Comments on a pull request."""

    def _path(self, workspace: str, repo_slug: str, pr_id: int, *segments: Any) -> str:
        return self.repository_path(workspace, repo_slug, "pullrequests", pr_id, "comments", *segments)

    async def list(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        page: Optional[int] = None,
        pagelen: Optional[int] = None,
        q: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> PaginatedResponse[Comment]:
        path = self._path(workspace, repo_slug, pr_id) + build_query(
            page=page, pagelen=pagelen, q=q, sort=sort
        )
        data = await self._client.get(path)
        return PaginatedResponse[Comment].model_validate(data)

    async def list_all(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        q: Optional[str] = None,
        sort: Optional[str] = None,
        pagelen: int = DEFAULT_PAGELEN,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> List[Comment]:
        async def fetch_page(page: int, size: int) -> PaginatedResponse[Comment]:
            return await self.list(workspace, repo_slug, pr_id, page=page, pagelen=size, q=q, sort=sort)

        return await get_all_pages(fetch_page, pagelen=pagelen, max_pages=max_pages)

    async def get(self, workspace: str, repo_slug: str, pr_id: int, comment_id: int) -> Comment:
        data = await self._client.get(self._path(workspace, repo_slug, pr_id, comment_id))
        return Comment.model_validate(data)

    async def create(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        content: str,
        parent_id: Optional[int] = None,
        inline: Optional[dict[str, Any]] = None,
    ) -> Comment:
        """Post a comment; ``parent_id`` makes it a reply, ``inline`` anchors it to a file.

        ``inline`` follows the wire shape ``{"path": ..., "from": ..., "to": ...}``.
        """
        body: dict[str, Any] = {"content": {"raw": content}}
        if parent_id is not None:
            body["parent"] = {"id": parent_id}
        if inline is not None:
            body["inline"] = inline

        data = await self._client.post(self._path(workspace, repo_slug, pr_id), body)
        return Comment.model_validate(data)

    async def update(
        self, workspace: str, repo_slug: str, pr_id: int, comment_id: int, content: str
    ) -> Comment:
        data = await self._client.put(
            self._path(workspace, repo_slug, pr_id, comment_id), {"content": {"raw": content}}
        )
        return Comment.model_validate(data)

    async def delete(self, workspace: str, repo_slug: str, pr_id: int, comment_id: int) -> None:
        await self._client.delete(self._path(workspace, repo_slug, pr_id, comment_id))
