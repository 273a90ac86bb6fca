"""Pydantic models for Bitbucket API entities.

Models mirror the wire format of Bitbucket Cloud 2.0. Fields the server may
omit are optional, and unknown fields are kept as extras so nothing in a
response is silently dropped.
"""

from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

PullRequestState = Literal["OPEN", "MERGED", "DECLINED", "SUPERSEDED"]
TaskState = Literal["RESOLVED", "UNRESOLVED"]
MergeStrategy = Literal["merge_commit", "squash", "fast_forward"]


class _Base(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class PaginatedResponse(_Base, Generic[T]):
    """One page of a cursor-paginated collection."""

    size: Optional[int] = None
    page: Optional[int] = None
    pagelen: Optional[int] = None
    next: Optional[str] = None
    previous: Optional[str] = None
    values: List[T] = Field(default_factory=list)


class Link(_Base):
    href: str
    name: Optional[str] = None


class User(_Base):
    display_name: str = ""
    uuid: Optional[str] = None
    nickname: Optional[str] = None
    account_id: Optional[str] = None


class Author(_Base):
    """Commit author: a raw ``Name <email>`` string, optionally linked to a user."""

    raw: Optional[str] = None
    user: Optional[User] = None
    display_name: Optional[str] = None

    @property
    def name(self) -> Optional[str]:
        if self.display_name:
            return self.display_name
        if self.user is not None and self.user.display_name:
            return self.user.display_name
        return self.raw


class RenderedContent(_Base):
    raw: str = ""
    markup: Optional[str] = None
    html: Optional[str] = None


class BranchRef(_Base):
    name: str


class CommitRef(_Base):
    hash: str


class BranchInfo(_Base):
    """Source or destination of a pull request."""

    branch: BranchRef
    commit: Optional[CommitRef] = None
    repository: Optional[dict] = None


class Participant(_Base):
    user: User
    role: Optional[str] = None
    approved: bool = False
    state: Optional[str] = None
    participated_on: Optional[str] = None


class PullRequest(_Base):
    id: int
    title: str
    description: Optional[str] = None
    state: Optional[str] = None
    author: User = Field(default_factory=User)
    source: BranchInfo
    destination: BranchInfo
    merge_commit: Optional[CommitRef] = None
    comment_count: int = 0
    task_count: int = 0
    close_source_branch: Optional[bool] = None
    closed_by: Optional[User] = None
    reason: Optional[str] = None
    created_on: Optional[str] = None
    updated_on: Optional[str] = None
    reviewers: List[User] = Field(default_factory=list)
    participants: List[Participant] = Field(default_factory=list)


class Commit(_Base):
    hash: str
    date: Optional[str] = None
    author: Author = Field(default_factory=Author)
    message: Optional[str] = None


class InlineInfo(_Base):
    path: str
    from_: Optional[int] = Field(default=None, alias="from")
    to: Optional[int] = None


class CommentParent(_Base):
    id: int


class Comment(_Base):
    id: int
    content: RenderedContent = Field(default_factory=RenderedContent)
    user: User = Field(default_factory=User)
    created_on: Optional[str] = None
    updated_on: Optional[str] = None
    inline: Optional[InlineInfo] = None
    parent: Optional[CommentParent] = None
    deleted: bool = False
    pending: Optional[bool] = None


class Task(_Base):
    id: int
    content: RenderedContent = Field(default_factory=RenderedContent)
    state: Optional[str] = None
    creator: User = Field(default_factory=User)
    created_on: Optional[str] = None
    updated_on: Optional[str] = None


class BranchTarget(_Base):
    hash: str
    date: Optional[str] = None
    author: Author = Field(default_factory=Author)
    message: Optional[str] = None


class Branch(_Base):
    name: str
    target: BranchTarget
    default_merge_strategy: Optional[str] = None
    merge_strategies: Optional[List[str]] = None
