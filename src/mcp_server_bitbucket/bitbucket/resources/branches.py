"""Branch endpoints"""

from typing import List, Optional

from ..models import Branch, PaginatedResponse
from ..pagination import DEFAULT_MAX_PAGES, DEFAULT_PAGELEN, get_all_pages
from .base import BaseResource, build_query


class BranchesResource(BaseResource):
    """Branches of a repository. Branch names may contain slashes and are encoded."""

    async def list(
        self,
        workspace: str,
        repo_slug: str,
        page: Optional[int] = None,
        pagelen: Optional[int] = None,
        q: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> PaginatedResponse[Branch]:
        path = self.repository_path(workspace, repo_slug, "refs", "branches") + build_query(
            page=page, pagelen=pagelen, q=q, sort=sort
        )
        data = await self._client.get(path)
        return PaginatedResponse[Branch].model_validate(data)

    async def list_all(
        self,
        workspace: str,
        repo_slug: str,
        q: Optional[str] = None,
        sort: Optional[str] = None,
        pagelen: int = DEFAULT_PAGELEN,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> List[Branch]:
        async def fetch_page(page: int, size: int) -> PaginatedResponse[Branch]:
            return await self.list(workspace, repo_slug, page=page, pagelen=size, q=q, sort=sort)

        return await get_all_pages(fetch_page, pagelen=pagelen, max_pages=max_pages)

    async def get(self, workspace: str, repo_slug: str, branch_name: str) -> Branch:
        data = await self._client.get(self.repository_path(workspace, repo_slug, "refs", "branches", branch_name))
        return Branch.model_validate(data)

    async def create(self, workspace: str, repo_slug: str, name: str, target_hash: str) -> Branch:
        """Create ``name`` pointing at commit ``target_hash``."""
        body = {"name": name, "target": {"hash": target_hash}}
        data = await self._client.post(self.repository_path(workspace, repo_slug, "refs", "branches"), body)
        return Branch.model_validate(data)

    async def delete(self, workspace: str, repo_slug: str, branch_name: str) -> None:
        await self._client.delete(self.repository_path(workspace, repo_slug, "refs", "branches", branch_name))
