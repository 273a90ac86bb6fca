"""Shared path and query-string construction for resource endpoints"""

from typing import Any
from urllib.parse import quote, urlencode

from ..client import BitbucketClient


def encode_segment(value: Any) -> str:
    """Percent-encode a single path segment, including any slashes."""
    return quote(str(value), safe="")


def build_query(**params: Any) -> str:
    """Serialize only the parameters that were supplied, in argument order."""
    present = [(key, value) for key, value in params.items() if value is not None]
    return f"?{urlencode(present)}" if present else ""


class BaseResource:
    """A Bitbucket resource bound to one client and nothing else."""

    def __init__(self, client: BitbucketClient):
        self._client = client

    @staticmethod
    def repository_path(workspace: str, repo_slug: str, *segments: Any) -> str:
        """Build ``/repositories/{workspace}/{repo_slug}/...`` with encoded segments."""
        parts = [encode_segment(workspace), encode_segment(repo_slug)]
        parts.extend(encode_segment(segment) for segment in segments)
        return "/repositories/" + "/".join(parts)
