"""Tool handlers and the registry of allow-listed tools.

Each handler receives the transport client and its validated argument model and
returns either a result dict or a StructuredError. Handlers never raise for
GitHub failures: every response goes through `parse_response`, which either
classifies the failure or validates the body against the expected shape.

Most tools issue exactly one request. Composite tools (`create_or_update_file`
without a sha, `create_branch`, `push_files`) run a fixed sequence of single
requests, one at a time, and stop at the first failure.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel

from .codec import (ContentDecodeError, ContentEncodeError, decode_content,
                    encode_content)
from .errors import StructuredError
from .github_client import GitHubClient
from .normalizer import parse_failure, parse_response
from .registry import ToolDescriptor, ToolOutcome, ToolRegistry
from .schemas import (AddIssueCommentInput, CreateBranchInput,
                      CreateIssueInput, CreateOrUpdateFileInput,
                      CreatePullRequestInput, CreateRepositoryInput,
                      ForkRepositoryInput, GetFileContentsInput,
                      GitHubCodeSearchResponse, GitHubCommit,
                      GitHubContentEntry, GitHubCreateUpdateFileResponse,
                      GitHubFileContent, GitHubIssue, GitHubIssueComment,
                      GitHubIssueSearchResponse, GitHubListCommit,
                      GitHubPullRequest, GitHubReference, GitHubRepository,
                      GitHubRepositorySearchResponse, GitHubTree,
                      GitHubUserSearchResponse, IssueNumberInput,
                      ListCommitsInput, ListIssuesInput, PushFilesInput,
                      SearchCodeInput, SearchIssuesInput,
                      SearchRepositoriesInput, SearchUsersInput,
                      UpdateIssueInput)


def _repo_path(owner: str, repo: str) -> str:
    return f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"


def _contents_path(owner: str, repo: str, path: str) -> str:
    return f"{_repo_path(owner, repo)}/contents/{quote(path.lstrip('/'), safe='/')}"


def _branch(branch: str) -> str:
    return quote(branch, safe="/")


def _params(**values: Any) -> dict[str, str] | None:
    params: dict[str, str] = {}
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, bool):
            params[key] = "true" if value else "false"
        elif isinstance(value, list):
            params[key] = ",".join(str(v) for v in value)
        else:
            params[key] = str(value)
    return params or None


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json")


async def _call(
    client: GitHubClient,
    *,
    method: str,
    path: str,
    context: str,
    shape: Any,
    json_body: dict[str, Any] | None = None,
    params: dict[str, str] | None = None,
) -> Any:
    resp = await client.request(method=method, path=path, json_body=json_body, params=params)
    return parse_response(resp, context, shape)


async def _tool_create_or_update_file(client: GitHubClient, args: CreateOrUpdateFileInput) -> ToolOutcome:
    context = f"creating or updating file {args.path}"
    try:
        encoded = encode_content(args.content)
    except ContentEncodeError as exc:
        return replace(exc.error, context=context)
    path = _contents_path(args.owner, args.repo, args.path)

    sha = args.sha
    if sha is None:
        lookup = await client.request(method="GET", path=path, params=_params(ref=args.branch))
        # 404 means the file does not exist yet and will be created.
        if lookup.status_code != 404:
            existing = parse_response(lookup, f"looking up the current version of {args.path}", GitHubContentEntry)
            if isinstance(existing, StructuredError):
                return existing
            sha = existing.sha

    body: dict[str, Any] = {"message": args.message, "content": encoded, "branch": args.branch}
    if sha is not None:
        body["sha"] = sha

    data = await _call(
        client,
        method="PUT",
        path=path,
        json_body=body,
        context=context,
        shape=GitHubCreateUpdateFileResponse,
    )
    if isinstance(data, StructuredError):
        return data
    return {
        "content": _dump(data.content) if data.content is not None else None,
        "commit": _dump(data.commit),
    }


async def _tool_get_file_contents(client: GitHubClient, args: GetFileContentsInput) -> ToolOutcome:
    context = f"getting contents of {args.path or '/'}"
    resp = await client.request(
        method="GET",
        path=_contents_path(args.owner, args.repo, args.path),
        params=_params(ref=args.branch),
    )
    data = parse_response(resp, context, list[GitHubContentEntry] | GitHubFileContent)
    if isinstance(data, StructuredError):
        return data
    if isinstance(data, list):
        return {"entries": [_dump(entry) for entry in data]}

    file_obj = _dump(data)
    if data.type == "file":
        if data.encoding != "base64" or data.content is None:
            return parse_failure(resp, context, f"unsupported file content encoding {data.encoding!r}")
        try:
            file_obj["content"] = decode_content(data.content)
        except ContentDecodeError as exc:
            return replace(
                exc.error,
                context=context,
                http_status=resp.status_code,
                origin_method=resp.method,
                origin_path=resp.path,
            )
        file_obj["encoding"] = "utf-8"
    return {"file": file_obj}


async def _tool_push_files(client: GitHubClient, args: PushFilesInput) -> ToolOutcome:
    repo_path = _repo_path(args.owner, args.repo)
    branch = _branch(args.branch)

    ref = await _call(
        client,
        method="GET",
        path=f"{repo_path}/git/ref/heads/{branch}",
        context=f"getting reference for branch {args.branch}",
        shape=GitHubReference,
    )
    if isinstance(ref, StructuredError):
        return ref
    head_sha = ref.object.sha

    head = await _call(
        client,
        method="GET",
        path=f"{repo_path}/git/commits/{head_sha}",
        context=f"getting commit {head_sha}",
        shape=GitHubCommit,
    )
    if isinstance(head, StructuredError):
        return head

    tree = await _call(
        client,
        method="POST",
        path=f"{repo_path}/git/trees",
        json_body={
            "base_tree": head.tree.sha,
            "tree": [{"path": f.path, "mode": "100644", "type": "blob", "content": f.content} for f in args.files],
        },
        context="creating tree",
        shape=GitHubTree,
    )
    if isinstance(tree, StructuredError):
        return tree

    commit = await _call(
        client,
        method="POST",
        path=f"{repo_path}/git/commits",
        json_body={"message": args.message, "tree": tree.sha, "parents": [head_sha]},
        context="creating commit",
        shape=GitHubCommit,
    )
    if isinstance(commit, StructuredError):
        return commit

    updated = await _call(
        client,
        method="PATCH",
        path=f"{repo_path}/git/refs/heads/{branch}",
        json_body={"sha": commit.sha, "force": False},
        context=f"updating reference for branch {args.branch}",
        shape=GitHubReference,
    )
    if isinstance(updated, StructuredError):
        return updated
    return {"commit": _dump(commit), "ref": _dump(updated)}


async def _tool_search_repositories(client: GitHubClient, args: SearchRepositoriesInput) -> ToolOutcome:
    data = await _call(
        client,
        method="GET",
        path="/search/repositories",
        params=_params(q=args.query, page=args.page, per_page=args.per_page),
        context="searching repositories",
        shape=GitHubRepositorySearchResponse,
    )
    if isinstance(data, StructuredError):
        return data
    return {"search": _dump(data)}


async def _tool_create_repository(client: GitHubClient, args: CreateRepositoryInput) -> ToolOutcome:
    data = await _call(
        client,
        method="POST",
        path="/user/repos",
        json_body=args.model_dump(exclude_none=True),
        context=f"creating repository {args.name}",
        shape=GitHubRepository,
    )
    if isinstance(data, StructuredError):
        return data
    return {"repository": _dump(data)}


async def _tool_fork_repository(client: GitHubClient, args: ForkRepositoryInput) -> ToolOutcome:
    body = {"organization": args.organization} if args.organization else {}
    data = await _call(
        client,
        method="POST",
        path=f"{_repo_path(args.owner, args.repo)}/forks",
        json_body=body,
        context=f"forking repository {args.owner}/{args.repo}",
        shape=GitHubRepository,
    )
    if isinstance(data, StructuredError):
        return data
    return {"repository": _dump(data)}


async def _tool_create_branch(client: GitHubClient, args: CreateBranchInput) -> ToolOutcome:
    repo_path = _repo_path(args.owner, args.repo)

    source = args.from_branch
    if source is None:
        repo_resp = await client.request(method="GET", path=repo_path)
        repository = parse_response(repo_resp, "getting the default branch", GitHubRepository)
        if isinstance(repository, StructuredError):
            return repository
        if not repository.default_branch:
            return parse_failure(repo_resp, "getting the default branch", "default_branch is missing")
        source = repository.default_branch

    ref = await _call(
        client,
        method="GET",
        path=f"{repo_path}/git/ref/heads/{_branch(source)}",
        context=f"getting reference for branch {source}",
        shape=GitHubReference,
    )
    if isinstance(ref, StructuredError):
        return ref

    created = await _call(
        client,
        method="POST",
        path=f"{repo_path}/git/refs",
        json_body={"ref": f"refs/heads/{args.branch}", "sha": ref.object.sha},
        context=f"creating branch {args.branch}",
        shape=GitHubReference,
    )
    if isinstance(created, StructuredError):
        return created
    return {"ref": _dump(created)}


async def _tool_list_commits(client: GitHubClient, args: ListCommitsInput) -> ToolOutcome:
    data = await _call(
        client,
        method="GET",
        path=f"{_repo_path(args.owner, args.repo)}/commits",
        params=_params(sha=args.sha, page=args.page, per_page=args.per_page),
        context="listing commits",
        shape=list[GitHubListCommit],
    )
    if isinstance(data, StructuredError):
        return data
    return {"commits": [_dump(c) for c in data]}


async def _tool_create_issue(client: GitHubClient, args: CreateIssueInput) -> ToolOutcome:
    data = await _call(
        client,
        method="POST",
        path=f"{_repo_path(args.owner, args.repo)}/issues",
        json_body=args.model_dump(exclude={"owner", "repo"}, exclude_none=True),
        context="creating an issue",
        shape=GitHubIssue,
    )
    if isinstance(data, StructuredError):
        return data
    return {"issue": _dump(data)}


async def _tool_get_issue(client: GitHubClient, args: IssueNumberInput) -> ToolOutcome:
    data = await _call(
        client,
        method="GET",
        path=f"{_repo_path(args.owner, args.repo)}/issues/{args.issue_number}",
        context=f"getting issue #{args.issue_number}",
        shape=GitHubIssue,
    )
    if isinstance(data, StructuredError):
        return data
    return {"issue": _dump(data)}


async def _tool_list_issues(client: GitHubClient, args: ListIssuesInput) -> ToolOutcome:
    data = await _call(
        client,
        method="GET",
        path=f"{_repo_path(args.owner, args.repo)}/issues",
        params=_params(
            state=args.state,
            labels=args.labels,
            sort=args.sort,
            direction=args.direction,
            since=args.since,
            page=args.page,
            per_page=args.per_page,
        ),
        context="listing issues",
        shape=list[GitHubIssue],
    )
    if isinstance(data, StructuredError):
        return data
    return {"issues": [_dump(i) for i in data]}


async def _tool_update_issue(client: GitHubClient, args: UpdateIssueInput) -> ToolOutcome:
    data = await _call(
        client,
        method="PATCH",
        path=f"{_repo_path(args.owner, args.repo)}/issues/{args.issue_number}",
        json_body=args.model_dump(exclude={"owner", "repo", "issue_number"}, exclude_none=True),
        context=f"updating issue #{args.issue_number}",
        shape=GitHubIssue,
    )
    if isinstance(data, StructuredError):
        return data
    return {"issue": _dump(data)}


async def _tool_add_issue_comment(client: GitHubClient, args: AddIssueCommentInput) -> ToolOutcome:
    data = await _call(
        client,
        method="POST",
        path=f"{_repo_path(args.owner, args.repo)}/issues/{args.issue_number}/comments",
        json_body={"body": args.body},
        context=f"adding a comment to issue #{args.issue_number}",
        shape=GitHubIssueComment,
    )
    if isinstance(data, StructuredError):
        return data
    return {"comment": _dump(data)}


async def _tool_create_pull_request(client: GitHubClient, args: CreatePullRequestInput) -> ToolOutcome:
    data = await _call(
        client,
        method="POST",
        path=f"{_repo_path(args.owner, args.repo)}/pulls",
        json_body=args.model_dump(exclude={"owner", "repo"}, exclude_none=True),
        context="creating a pull request",
        shape=GitHubPullRequest,
    )
    if isinstance(data, StructuredError):
        return data
    return {"pull_request": _dump(data)}


async def _search(client: GitHubClient, *, kind: str, args: Any, shape: Any) -> ToolOutcome:
    data = await _call(
        client,
        method="GET",
        path=f"/search/{kind}",
        params=_params(q=args.q, sort=args.sort, order=args.order, page=args.page, per_page=args.per_page),
        context=f"searching {kind}",
        shape=shape,
    )
    if isinstance(data, StructuredError):
        return data
    return {"search": _dump(data)}


async def _tool_search_code(client: GitHubClient, args: SearchCodeInput) -> ToolOutcome:
    return await _search(client, kind="code", args=args, shape=GitHubCodeSearchResponse)


async def _tool_search_issues(client: GitHubClient, args: SearchIssuesInput) -> ToolOutcome:
    return await _search(client, kind="issues", args=args, shape=GitHubIssueSearchResponse)


async def _tool_search_users(client: GitHubClient, args: SearchUsersInput) -> ToolOutcome:
    return await _search(client, kind="users", args=args, shape=GitHubUserSearchResponse)


def build_registry() -> ToolRegistry:
    """Build the read-only registry of allow-listed tools."""
    return ToolRegistry(
        [
            ToolDescriptor(
                name="create_or_update_file",
                description="Create or update a single file in a GitHub repository",
                input_model=CreateOrUpdateFileInput,
                handler=_tool_create_or_update_file,
            ),
            ToolDescriptor(
                name="get_file_contents",
                description="Get the contents of a file or directory from a GitHub repository",
                input_model=GetFileContentsInput,
                handler=_tool_get_file_contents,
            ),
            ToolDescriptor(
                name="push_files",
                description="Push multiple files to a GitHub repository in a single commit",
                input_model=PushFilesInput,
                handler=_tool_push_files,
            ),
            ToolDescriptor(
                name="search_repositories",
                description="Search for GitHub repositories",
                input_model=SearchRepositoriesInput,
                handler=_tool_search_repositories,
            ),
            ToolDescriptor(
                name="create_repository",
                description="Create a new GitHub repository in your account",
                input_model=CreateRepositoryInput,
                handler=_tool_create_repository,
            ),
            ToolDescriptor(
                name="fork_repository",
                description="Fork a GitHub repository to your account or specified organization",
                input_model=ForkRepositoryInput,
                handler=_tool_fork_repository,
            ),
            ToolDescriptor(
                name="create_branch",
                description="Create a new branch in a GitHub repository",
                input_model=CreateBranchInput,
                handler=_tool_create_branch,
            ),
            ToolDescriptor(
                name="list_commits",
                description="Get list of commits of a branch in a GitHub repository",
                input_model=ListCommitsInput,
                handler=_tool_list_commits,
            ),
            ToolDescriptor(
                name="create_issue",
                description="Create a new issue in a GitHub repository",
                input_model=CreateIssueInput,
                handler=_tool_create_issue,
            ),
            ToolDescriptor(
                name="get_issue",
                description="Get details of a specific issue in a GitHub repository",
                input_model=IssueNumberInput,
                handler=_tool_get_issue,
            ),
            ToolDescriptor(
                name="list_issues",
                description="List issues in a GitHub repository with filtering options",
                input_model=ListIssuesInput,
                handler=_tool_list_issues,
            ),
            ToolDescriptor(
                name="update_issue",
                description="Update an existing issue in a GitHub repository",
                input_model=UpdateIssueInput,
                handler=_tool_update_issue,
            ),
            ToolDescriptor(
                name="add_issue_comment",
                description="Add a comment to an existing issue",
                input_model=AddIssueCommentInput,
                handler=_tool_add_issue_comment,
            ),
            ToolDescriptor(
                name="create_pull_request",
                description="Create a new pull request in a GitHub repository",
                input_model=CreatePullRequestInput,
                handler=_tool_create_pull_request,
            ),
            ToolDescriptor(
                name="search_code",
                description="Search for code across GitHub repositories",
                input_model=SearchCodeInput,
                handler=_tool_search_code,
            ),
            ToolDescriptor(
                name="search_issues",
                description="Search for issues and pull requests across GitHub repositories",
                input_model=SearchIssuesInput,
                handler=_tool_search_issues,
            ),
            ToolDescriptor(
                name="search_users",
                description="Search for users on GitHub",
                input_model=SearchUsersInput,
                handler=_tool_search_users,
            ),
        ]
    )
