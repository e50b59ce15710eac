"""Pydantic models for tool inputs and GitHub response shapes.

Input models are strict and forbid unknown fields: they validate untrusted
agent arguments. Response models ignore unknown fields and only require what
the tools read back; a body missing a required field is a ParseFailure.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Tool inputs
# ---------------------------------------------------------------------------


class ToolInput(BaseModel):
    """Base for tool argument models."""

    model_config = ConfigDict(extra="forbid", strict=True, populate_by_name=True)


class RepoInput(ToolInput):
    owner: str = Field(min_length=1, description="Repository owner (username or organization)")
    repo: str = Field(min_length=1, description="Repository name")


class CreateOrUpdateFileInput(RepoInput):
    path: str = Field(min_length=1, description="Path where to create/update the file")
    content: str = Field(description="Content of the file")
    message: str = Field(min_length=1, description="Commit message")
    branch: str = Field(min_length=1, description="Branch to create/update the file in")
    sha: Optional[str] = Field(
        default=None,
        min_length=1,
        description="SHA of the file being replaced (required when updating existing files)",
    )


class GetFileContentsInput(RepoInput):
    path: str = Field(description="Path to the file or directory")
    branch: Optional[str] = Field(default=None, min_length=1, description="Branch to get contents from")


class FileOperation(ToolInput):
    path: str = Field(min_length=1)
    content: str


class PushFilesInput(RepoInput):
    branch: str = Field(min_length=1, description="Branch to push to (e.g., 'main' or 'master')")
    files: list[FileOperation] = Field(min_length=1, description="Array of files to push")
    message: str = Field(min_length=1, description="Commit message")


class SearchRepositoriesInput(ToolInput):
    query: str = Field(min_length=1, description="Search query (see GitHub search syntax)")
    page: Optional[int] = Field(default=None, ge=1, description="Page number for pagination (default: 1)")
    per_page: Optional[int] = Field(
        default=None, ge=1, le=100, alias="perPage", description="Number of results per page (default: 30, max: 100)"
    )


class CreateRepositoryInput(ToolInput):
    name: str = Field(min_length=1, description="Repository name")
    description: Optional[str] = Field(default=None, description="Repository description")
    private: Optional[bool] = Field(default=None, description="Whether the repository should be private")
    auto_init: Optional[bool] = Field(default=None, alias="autoInit", description="Initialize with README.md")


class ForkRepositoryInput(RepoInput):
    organization: Optional[str] = Field(
        default=None, min_length=1, description="Optional: organization to fork to (defaults to your personal account)"
    )


class CreateBranchInput(RepoInput):
    branch: str = Field(min_length=1, description="Name for the new branch")
    from_branch: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Optional: source branch to create from (defaults to the repository's default branch)",
    )


class ListCommitsInput(RepoInput):
    sha: Optional[str] = Field(default=None, min_length=1, description="Branch name or commit SHA to list from")
    page: Optional[int] = Field(default=None, ge=1)
    per_page: Optional[int] = Field(default=None, ge=1, le=100, alias="perPage")


class CreateIssueInput(RepoInput):
    title: str = Field(min_length=1)
    body: Optional[str] = None
    assignees: Optional[list[str]] = None
    milestone: Optional[int] = Field(default=None, ge=1)
    labels: Optional[list[str]] = None


class IssueNumberInput(RepoInput):
    issue_number: int = Field(ge=1)


class ListIssuesInput(RepoInput):
    state: Optional[Literal["open", "closed", "all"]] = None
    labels: Optional[list[str]] = None
    sort: Optional[Literal["created", "updated", "comments"]] = None
    direction: Optional[Literal["asc", "desc"]] = None
    since: Optional[str] = Field(default=None, description="ISO 8601 timestamp")
    page: Optional[int] = Field(default=None, ge=1)
    per_page: Optional[int] = Field(default=None, ge=1, le=100)


class UpdateIssueInput(IssueNumberInput):
    title: Optional[str] = Field(default=None, min_length=1)
    body: Optional[str] = None
    state: Optional[Literal["open", "closed"]] = None
    labels: Optional[list[str]] = None
    assignees: Optional[list[str]] = None
    milestone: Optional[int] = Field(default=None, ge=1)


class AddIssueCommentInput(IssueNumberInput):
    body: str = Field(min_length=1)


class CreatePullRequestInput(RepoInput):
    title: str = Field(min_length=1, description="Pull request title")
    body: Optional[str] = Field(default=None, description="Pull request body/description")
    head: str = Field(min_length=1, description="The name of the branch where your changes are implemented")
    base: str = Field(min_length=1, description="The name of the branch you want the changes pulled into")
    draft: Optional[bool] = Field(default=None, description="Whether to create the pull request as a draft")
    maintainer_can_modify: Optional[bool] = Field(
        default=None, description="Whether maintainers can modify the pull request"
    )


class SearchInput(ToolInput):
    q: str = Field(min_length=1, description="Search query (see GitHub search syntax)")
    order: Optional[Literal["asc", "desc"]] = None
    page: Optional[int] = Field(default=None, ge=1)
    per_page: Optional[int] = Field(default=None, ge=1, le=100)


class SearchCodeInput(SearchInput):
    sort: Optional[Literal["indexed"]] = None


class SearchIssuesInput(SearchInput):
    sort: Optional[
        Literal[
            "comments",
            "reactions",
            "reactions-+1",
            "reactions--1",
            "reactions-smile",
            "reactions-thinking_face",
            "reactions-heart",
            "reactions-tada",
            "interactions",
            "created",
            "updated",
        ]
    ] = None


class SearchUsersInput(SearchInput):
    sort: Optional[Literal["followers", "repositories", "joined"]] = None


# ---------------------------------------------------------------------------
# GitHub responses
# ---------------------------------------------------------------------------


class GitHubModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class GitHubOwner(GitHubModel):
    login: str
    id: int
    node_id: Optional[str] = None
    avatar_url: Optional[str] = None
    url: Optional[str] = None
    html_url: Optional[str] = None
    type: Optional[str] = None


class GitHubRepository(GitHubModel):
    id: int
    node_id: Optional[str] = None
    name: str
    full_name: str
    private: bool
    owner: GitHubOwner
    html_url: str
    description: Optional[str] = None
    fork: bool = False
    url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    pushed_at: Optional[str] = None
    clone_url: Optional[str] = None
    default_branch: Optional[str] = None


class GitHubContentEntry(GitHubModel):
    type: str
    name: str
    path: str
    sha: str
    size: int = 0
    url: Optional[str] = None
    html_url: Optional[str] = None
    download_url: Optional[str] = None


class GitHubFileContent(GitHubContentEntry):
    content: Optional[str] = None
    encoding: Optional[str] = None


class GitHubAuthor(GitHubModel):
    name: str
    email: str
    date: str


class GitHubShaRef(GitHubModel):
    sha: str
    url: Optional[str] = None


class GitHubCommit(GitHubModel):
    sha: str
    node_id: Optional[str] = None
    url: Optional[str] = None
    html_url: Optional[str] = None
    author: GitHubAuthor
    committer: GitHubAuthor
    message: str
    tree: GitHubShaRef
    parents: list[GitHubShaRef] = Field(default_factory=list)


class GitHubCreateUpdateFileResponse(GitHubModel):
    content: Optional[GitHubFileContent] = None
    commit: GitHubCommit


class GitHubReferenceObject(GitHubModel):
    sha: str
    type: str
    url: Optional[str] = None


class GitHubReference(GitHubModel):
    ref: str
    node_id: Optional[str] = None
    url: Optional[str] = None
    object: GitHubReferenceObject


class GitHubTree(GitHubModel):
    sha: str
    url: Optional[str] = None
    truncated: bool = False


class GitHubListCommitDetail(GitHubModel):
    author: Optional[GitHubAuthor] = None
    committer: Optional[GitHubAuthor] = None
    message: str
    comment_count: int = 0


class GitHubListCommit(GitHubModel):
    sha: str
    node_id: Optional[str] = None
    commit: GitHubListCommitDetail
    url: Optional[str] = None
    html_url: Optional[str] = None
    author: Optional[GitHubOwner] = None
    committer: Optional[GitHubOwner] = None


class GitHubLabel(GitHubModel):
    id: int
    name: str
    color: Optional[str] = None
    description: Optional[str] = None


class GitHubMilestone(GitHubModel):
    id: int
    number: int
    title: str
    state: str
    description: Optional[str] = None
    html_url: Optional[str] = None


class GitHubIssue(GitHubModel):
    id: int
    node_id: Optional[str] = None
    number: int
    title: str
    state: str
    html_url: str
    url: Optional[str] = None
    user: Optional[GitHubOwner] = None
    labels: list[GitHubLabel] = Field(default_factory=list)
    assignees: list[GitHubOwner] = Field(default_factory=list)
    milestone: Optional[GitHubMilestone] = None
    locked: bool = False
    comments: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    closed_at: Optional[str] = None
    body: Optional[str] = None
    pull_request: Optional[dict[str, Any]] = None


class GitHubIssueComment(GitHubModel):
    id: int
    node_id: Optional[str] = None
    html_url: str
    body: str
    user: Optional[GitHubOwner] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class GitHubPullRequestRef(GitHubModel):
    label: Optional[str] = None
    ref: str
    sha: str


class GitHubPullRequest(GitHubModel):
    id: int
    node_id: Optional[str] = None
    number: int
    state: str
    title: str
    html_url: str
    url: Optional[str] = None
    diff_url: Optional[str] = None
    user: Optional[GitHubOwner] = None
    body: Optional[str] = None
    draft: bool = False
    locked: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    closed_at: Optional[str] = None
    merged_at: Optional[str] = None
    head: GitHubPullRequestRef
    base: GitHubPullRequestRef


class GitHubCodeSearchItem(GitHubModel):
    name: str
    path: str
    sha: str
    html_url: str
    score: Optional[float] = None
    repository: GitHubRepository


class GitHubUserSearchItem(GitHubOwner):
    score: Optional[float] = None


class GitHubIssueSearchItem(GitHubIssue):
    score: Optional[float] = None


class GitHubRepositorySearchResponse(GitHubModel):
    total_count: int
    incomplete_results: bool
    items: list[GitHubRepository]


class GitHubCodeSearchResponse(GitHubModel):
    total_count: int
    incomplete_results: bool
    items: list[GitHubCodeSearchItem]


class GitHubIssueSearchResponse(GitHubModel):
    total_count: int
    incomplete_results: bool
    items: list[GitHubIssueSearchItem]


class GitHubUserSearchResponse(GitHubModel):
    total_count: int
    incomplete_results: bool
    items: list[GitHubUserSearchItem]
