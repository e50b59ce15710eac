"""Happy-path tool execution tests.

These tests exercise every tool through the gateway using a real GitHubClient
over httpx.MockTransport. They never touch the network.
"""

from __future__ import annotations

import base64
import json
from typing import Any

import httpx
import pytest
from github_mcp.audit import AuditEvent, AuditLogger
from github_mcp.config import LimitsConfig
from github_mcp.errors import ErrorKind
from github_mcp.gateway import Gateway
from github_mcp.github_client import GitHubClient, static_token
from github_mcp.tools import build_registry

OWNER = {"login": "octo", "id": 1}
REPO = {
    "id": 10,
    "name": "repo",
    "full_name": "octo/repo",
    "private": False,
    "owner": OWNER,
    "html_url": "https://github.com/octo/repo",
    "default_branch": "main",
}
AUTHOR = {"name": "Octo", "email": "octo@example.com", "date": "2024-01-01T00:00:00Z"}
ISSUE = {
    "id": 100,
    "number": 7,
    "title": "Bug",
    "state": "open",
    "html_url": "https://github.com/octo/repo/issues/7",
    "labels": [{"id": 1, "name": "bug"}],
}


def _commit(sha: str, tree: str = "tree-0") -> dict[str, Any]:
    return {"sha": sha, "author": AUTHOR, "committer": AUTHOR, "message": "m", "tree": {"sha": tree}, "parents": []}


def _ref(branch: str, sha: str) -> dict[str, Any]:
    return {"ref": f"refs/heads/{branch}", "object": {"sha": sha, "type": "commit"}}


def _search(items: list[dict[str, Any]]) -> dict[str, Any]:
    return {"total_count": len(items), "incomplete_results": False, "items": items}


class DummyAudit(AuditLogger):
    def __init__(self) -> None:
        super().__init__(sink_path=None)
        self.events: list[AuditEvent] = []

    def write_event(self, event: AuditEvent) -> None:
        self.events.append(event)


class Router:
    def __init__(self, routes: dict[tuple[str, str], tuple[int, Any]]) -> None:
        self._routes = routes
        self.calls: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        key = (request.method, request.url.path)
        if key not in self._routes:
            raise AssertionError(f"Unexpected GitHub call: {key}")
        self.calls.append(request)
        status, body = self._routes[key]
        return httpx.Response(status, json=body)

    def keys(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.calls]

    def body(self, index: int) -> Any:
        return json.loads(self.calls[index].content)


def _gateway(routes: dict[tuple[str, str], tuple[int, Any]]) -> tuple[Gateway, Router, DummyAudit]:
    router = Router(routes)
    audit = DummyAudit()
    github = GitHubClient(
        token_provider=static_token("tok"),
        limits=LimitsConfig(),
        transport=httpx.MockTransport(router),
    )
    return Gateway(registry=build_registry(), github=github, audit=audit), router, audit


@pytest.mark.asyncio
async def test_get_file_contents_decodes_file() -> None:
    encoded = base64.b64encode("héllo\n".encode("utf-8")).decode("ascii")
    gateway, router, audit = _gateway(
        {
            ("GET", "/repos/octo/repo/contents/docs/readme.md"): (
                200,
                {
                    "type": "file",
                    "name": "readme.md",
                    "path": "docs/readme.md",
                    "sha": "abc",
                    "size": 7,
                    "encoding": "base64",
                    "content": encoded[:4] + "\n" + encoded[4:],
                },
            )
        }
    )

    result = await gateway.dispatch(
        "get_file_contents", {"owner": "octo", "repo": "repo", "path": "docs/readme.md", "branch": "dev"}
    )

    assert result.ok
    assert result.value is not None
    assert result.value["file"]["content"] == "héllo\n"
    assert result.value["file"]["encoding"] == "utf-8"
    assert router.calls[0].url.params["ref"] == "dev"
    assert audit.events[0].outcome == "succeeded"
    assert audit.events[0].error_kind is None


@pytest.mark.asyncio
async def test_get_file_contents_lists_directory() -> None:
    gateway, _, _ = _gateway(
        {
            ("GET", "/repos/octo/repo/contents/"): (
                200,
                [
                    {"type": "dir", "name": "src", "path": "src", "sha": "d1"},
                    {"type": "file", "name": "README.md", "path": "README.md", "sha": "f1", "size": 10},
                ],
            )
        }
    )

    result = await gateway.dispatch("get_file_contents", {"owner": "octo", "repo": "repo", "path": ""})

    assert result.value is not None
    assert [e["name"] for e in result.value["entries"]] == ["src", "README.md"]


@pytest.mark.asyncio
async def test_create_or_update_file_with_sha_issues_single_put() -> None:
    gateway, router, _ = _gateway(
        {("PUT", "/repos/octo/repo/contents/a.txt"): (200, {"content": None, "commit": _commit("c1")})}
    )

    result = await gateway.dispatch(
        "create_or_update_file",
        {"owner": "octo", "repo": "repo", "path": "a.txt", "content": "hello", "message": "m", "branch": "main", "sha": "old"},
    )

    assert result.ok
    assert router.keys() == [("PUT", "/repos/octo/repo/contents/a.txt")]
    assert router.body(0) == {"message": "m", "content": "aGVsbG8=", "branch": "main", "sha": "old"}


@pytest.mark.asyncio
async def test_create_or_update_file_creates_when_missing() -> None:
    gateway, router, _ = _gateway(
        {
            ("GET", "/repos/octo/repo/contents/new.txt"): (404, {"message": "Not Found"}),
            ("PUT", "/repos/octo/repo/contents/new.txt"): (201, {"commit": _commit("c1")}),
        }
    )

    result = await gateway.dispatch(
        "create_or_update_file",
        {"owner": "octo", "repo": "repo", "path": "new.txt", "content": "x", "message": "m", "branch": "main"},
    )

    assert result.ok
    assert result.value is not None
    assert result.value["commit"]["sha"] == "c1"
    assert "sha" not in router.body(1)


@pytest.mark.asyncio
async def test_create_or_update_file_updates_existing_sha() -> None:
    gateway, router, _ = _gateway(
        {
            ("GET", "/repos/octo/repo/contents/a.txt"): (
                200,
                {"type": "file", "name": "a.txt", "path": "a.txt", "sha": "existing"},
            ),
            ("PUT", "/repos/octo/repo/contents/a.txt"): (200, {"commit": _commit("c2")}),
        }
    )

    result = await gateway.dispatch(
        "create_or_update_file",
        {"owner": "octo", "repo": "repo", "path": "a.txt", "content": "x", "message": "m", "branch": "main"},
    )

    assert result.ok
    assert router.body(1)["sha"] == "existing"


@pytest.mark.asyncio
async def test_push_files_runs_git_data_sequence() -> None:
    gateway, router, _ = _gateway(
        {
            ("GET", "/repos/octo/repo/git/ref/heads/feature"): (200, _ref("feature", "head-sha")),
            ("GET", "/repos/octo/repo/git/commits/head-sha"): (200, _commit("head-sha", tree="base-tree")),
            ("POST", "/repos/octo/repo/git/trees"): (201, {"sha": "new-tree"}),
            ("POST", "/repos/octo/repo/git/commits"): (201, _commit("new-commit", tree="new-tree")),
            ("PATCH", "/repos/octo/repo/git/refs/heads/feature"): (200, _ref("feature", "new-commit")),
        }
    )

    result = await gateway.dispatch(
        "push_files",
        {
            "owner": "octo",
            "repo": "repo",
            "branch": "feature",
            "message": "add files",
            "files": [{"path": "a.txt", "content": "A"}, {"path": "b/c.txt", "content": "C"}],
        },
    )

    assert result.ok
    assert result.value is not None
    assert result.value["ref"]["object"]["sha"] == "new-commit"
    assert [m for m, _ in router.keys()] == ["GET", "GET", "POST", "POST", "PATCH"]
    tree_body = router.body(2)
    assert tree_body["base_tree"] == "base-tree"
    assert [t["path"] for t in tree_body["tree"]] == ["a.txt", "b/c.txt"]
    assert router.body(3) == {"message": "add files", "tree": "new-tree", "parents": ["head-sha"]}
    assert router.body(4) == {"sha": "new-commit", "force": False}


@pytest.mark.asyncio
async def test_push_files_stops_at_first_failure() -> None:
    gateway, router, audit = _gateway(
        {
            ("GET", "/repos/octo/repo/git/ref/heads/feature"): (200, _ref("feature", "head-sha")),
            ("GET", "/repos/octo/repo/git/commits/head-sha"): (200, _commit("head-sha")),
            ("POST", "/repos/octo/repo/git/trees"): (422, {"message": "tree.path contains a malformed path component"}),
            ("POST", "/repos/octo/repo/git/commits"): (201, _commit("never")),
        }
    )

    result = await gateway.dispatch(
        "push_files",
        {"owner": "octo", "repo": "repo", "branch": "feature", "message": "m", "files": [{"path": "../x", "content": "A"}]},
    )

    assert result.error is not None
    assert result.error.kind is ErrorKind.INVALID_REQUEST
    assert result.error.context == "creating tree"
    assert len(router.calls) == 3
    assert len(audit.events) == 1


@pytest.mark.asyncio
async def test_create_branch_defaults_to_repository_default_branch() -> None:
    gateway, router, _ = _gateway(
        {
            ("GET", "/repos/octo/repo"): (200, REPO),
            ("GET", "/repos/octo/repo/git/ref/heads/main"): (200, _ref("main", "main-sha")),
            ("POST", "/repos/octo/repo/git/refs"): (201, _ref("topic", "main-sha")),
        }
    )

    result = await gateway.dispatch("create_branch", {"owner": "octo", "repo": "repo", "branch": "topic"})

    assert result.ok
    assert router.body(2) == {"ref": "refs/heads/topic", "sha": "main-sha"}


@pytest.mark.asyncio
async def test_create_branch_from_explicit_source() -> None:
    gateway, router, _ = _gateway(
        {
            ("GET", "/repos/octo/repo/git/ref/heads/dev"): (200, _ref("dev", "dev-sha")),
            ("POST", "/repos/octo/repo/git/refs"): (201, _ref("topic", "dev-sha")),
        }
    )

    result = await gateway.dispatch(
        "create_branch", {"owner": "octo", "repo": "repo", "branch": "topic", "from_branch": "dev"}
    )

    assert result.ok
    assert len(router.calls) == 2


@pytest.mark.asyncio
async def test_search_repositories_passes_paging() -> None:
    gateway, router, _ = _gateway({("GET", "/search/repositories"): (200, _search([REPO]))})

    result = await gateway.dispatch("search_repositories", {"query": "mcp", "page": 2, "perPage": 5})

    assert result.value is not None
    assert result.value["search"]["items"][0]["full_name"] == "octo/repo"
    params = router.calls[0].url.params
    assert (params["q"], params["page"], params["per_page"]) == ("mcp", "2", "5")


@pytest.mark.asyncio
async def test_create_repository_sends_auto_init() -> None:
    gateway, router, _ = _gateway({("POST", "/user/repos"): (201, REPO)})

    result = await gateway.dispatch("create_repository", {"name": "repo", "private": True, "autoInit": True})

    assert result.value is not None
    assert result.value["repository"]["name"] == "repo"
    assert router.body(0) == {"name": "repo", "private": True, "auto_init": True}


@pytest.mark.asyncio
async def test_fork_repository_to_organization() -> None:
    gateway, router, _ = _gateway({("POST", "/repos/octo/repo/forks"): (202, {**REPO, "fork": True})})

    result = await gateway.dispatch("fork_repository", {"owner": "octo", "repo": "repo", "organization": "acme"})

    assert result.value is not None
    assert result.value["repository"]["fork"] is True
    assert router.body(0) == {"organization": "acme"}


@pytest.mark.asyncio
async def test_list_commits() -> None:
    gateway, router, _ = _gateway(
        {
            ("GET", "/repos/octo/repo/commits"): (
                200,
                [{"sha": "c1", "commit": {"message": "first", "author": AUTHOR}}],
            )
        }
    )

    result = await gateway.dispatch("list_commits", {"owner": "octo", "repo": "repo", "sha": "main", "perPage": 1})

    assert result.value is not None
    assert result.value["commits"][0]["commit"]["message"] == "first"
    assert router.calls[0].url.params["sha"] == "main"


@pytest.mark.asyncio
async def test_create_issue_sends_only_provided_fields() -> None:
    gateway, router, _ = _gateway({("POST", "/repos/octo/repo/issues"): (201, ISSUE)})

    result = await gateway.dispatch(
        "create_issue", {"owner": "octo", "repo": "repo", "title": "Bug", "labels": ["bug"]}
    )

    assert result.value is not None
    assert result.value["issue"]["number"] == 7
    assert router.body(0) == {"title": "Bug", "labels": ["bug"]}


@pytest.mark.asyncio
async def test_get_issue() -> None:
    gateway, _, _ = _gateway({("GET", "/repos/octo/repo/issues/7"): (200, ISSUE)})

    result = await gateway.dispatch("get_issue", {"owner": "octo", "repo": "repo", "issue_number": 7})

    envelope = result.to_envelope()
    assert envelope["ok"] is True
    assert envelope["issue"]["labels"][0]["name"] == "bug"
    assert envelope["correlation_id"] == result.correlation_id


@pytest.mark.asyncio
async def test_list_issues_joins_labels() -> None:
    gateway, router, _ = _gateway({("GET", "/repos/octo/repo/issues"): (200, [ISSUE])})

    result = await gateway.dispatch(
        "list_issues", {"owner": "octo", "repo": "repo", "state": "all", "labels": ["bug", "ui"]}
    )

    assert result.value is not None
    assert len(result.value["issues"]) == 1
    params = router.calls[0].url.params
    assert params["labels"] == "bug,ui"
    assert params["state"] == "all"


@pytest.mark.asyncio
async def test_update_issue() -> None:
    gateway, router, _ = _gateway(
        {("PATCH", "/repos/octo/repo/issues/7"): (200, {**ISSUE, "state": "closed"})}
    )

    result = await gateway.dispatch(
        "update_issue", {"owner": "octo", "repo": "repo", "issue_number": 7, "state": "closed"}
    )

    assert result.value is not None
    assert result.value["issue"]["state"] == "closed"
    assert router.body(0) == {"state": "closed"}


@pytest.mark.asyncio
async def test_add_issue_comment() -> None:
    gateway, router, _ = _gateway(
        {
            ("POST", "/repos/octo/repo/issues/7/comments"): (
                201,
                {"id": 5, "html_url": "https://github.com/octo/repo/issues/7#issuecomment-5", "body": "thanks"},
            )
        }
    )

    result = await gateway.dispatch(
        "add_issue_comment", {"owner": "octo", "repo": "repo", "issue_number": 7, "body": "thanks"}
    )

    assert result.value is not None
    assert result.value["comment"]["id"] == 5
    assert router.body(0) == {"body": "thanks"}


@pytest.mark.asyncio
async def test_create_pull_request() -> None:
    pr = {
        "id": 200,
        "number": 8,
        "state": "open",
        "title": "Feature",
        "html_url": "https://github.com/octo/repo/pull/8",
        "head": {"ref": "feature", "sha": "h"},
        "base": {"ref": "main", "sha": "b"},
    }
    gateway, router, _ = _gateway({("POST", "/repos/octo/repo/pulls"): (201, pr)})

    result = await gateway.dispatch(
        "create_pull_request",
        {"owner": "octo", "repo": "repo", "title": "Feature", "head": "feature", "base": "main", "draft": True},
    )

    assert result.value is not None
    assert result.value["pull_request"]["number"] == 8
    assert router.body(0) == {"title": "Feature", "head": "feature", "base": "main", "draft": True}


@pytest.mark.asyncio
async def test_search_code() -> None:
    item = {"name": "a.py", "path": "src/a.py", "sha": "s", "html_url": "https://github.com/x", "repository": REPO}
    gateway, _, _ = _gateway({("GET", "/search/code"): (200, _search([item]))})

    result = await gateway.dispatch("search_code", {"q": "def main repo:octo/repo"})

    assert result.value is not None
    assert result.value["search"]["items"][0]["path"] == "src/a.py"


@pytest.mark.asyncio
async def test_search_issues_marks_pull_requests() -> None:
    item = {**ISSUE, "pull_request": {"url": "https://api.github.com/repos/octo/repo/pulls/7"}, "score": 1.0}
    gateway, router, _ = _gateway({("GET", "/search/issues"): (200, _search([item]))})

    result = await gateway.dispatch("search_issues", {"q": "is:pr", "sort": "comments", "order": "desc"})

    assert result.value is not None
    assert result.value["search"]["items"][0]["pull_request"] is not None
    assert router.calls[0].url.params["sort"] == "comments"


@pytest.mark.asyncio
async def test_search_users() -> None:
    gateway, _, _ = _gateway({("GET", "/search/users"): (200, _search([{**OWNER, "score": 1.0}]))})

    result = await gateway.dispatch("search_users", {"q": "octo"})

    assert result.value is not None
    assert result.value["search"]["total_count"] == 1
