"""GitHub API adapter."""

import base64
from datetime import datetime
from typing import Any, Dict, List

import requests

from modpub.adapters.base import GitPlatformError, HostingAdapter, NotFoundError
from modpub.models import BranchState, Comment, Identity, PullRequestRecord, RemoteFile, RepositoryRef


def _parse_iso(s: str | None) -> datetime | None:
    if not s:
        return None
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _repository_from_api(data: Dict[str, Any]) -> RepositoryRef:
    owner = data.get("owner") or {}
    parent = data.get("parent")
    return RepositoryRef(
        owner=owner.get("login", ""),
        name=data["name"],
        default_branch=data.get("default_branch", "main"),
        fork=bool(data.get("fork", False)),
        parent=_repository_from_api(parent) if parent else None,
        html_url=data.get("html_url"),
        homepage=data.get("homepage") or None,
    )


def _pr_from_api(repo: str, data: Dict[str, Any]) -> PullRequestRecord:
    head = data.get("head") or {}
    base = data.get("base") or {}
    user = data.get("user") or {}
    return PullRequestRecord(
        number=data["number"],
        repo=repo,
        head=head.get("label", ""),
        base_branch=base.get("ref", ""),
        title=data.get("title") or "",
        body=data.get("body") or "",
        author=user.get("login", ""),
        state=data.get("state", "open"),
        created_at=_parse_iso(data.get("created_at")),
        html_url=data.get("html_url"),
    )


def _comment_from_api(data: Dict[str, Any]) -> Comment:
    user = data.get("user") or {}
    return Comment(
        id=data["id"],
        body=data.get("body") or "",
        author=user.get("login", ""),
        created_at=_parse_iso(data.get("created_at")),
        html_url=data.get("html_url"),
    )


def _identity_from_api(data: Dict[str, Any]) -> Identity:
    return Identity(
        login=data.get("login", ""),
        avatar_url=data.get("avatar_url"),
        html_url=data.get("html_url"),
    )


class GitHubAdapter(HostingAdapter):
    """GitHub REST API implementation of HostingAdapter."""

    def __init__(
        self,
        token: str | None = None,
        api_url: str = "https://api.github.com",
        timeout: int = 30,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> requests.Response:
        url = f"{self._api_url}{path}" if path.startswith("/") else f"{self._api_url}/{path}"
        resp = self._session.request(method, url, params=params, json=json, timeout=self._timeout)
        if resp.status_code == 404:
            raise NotFoundError(f"Not found: {path}")
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                msg = resp.json().get("message", msg)
            except ValueError:
                pass
            raise GitPlatformError(f"GitHub API error {resp.status_code}: {msg}", status_code=resp.status_code)
        return resp

    def get_repository(self, repo: str) -> RepositoryRef:
        return _repository_from_api(self._request("GET", f"/repos/{repo}").json())

    def create_fork(self, repo: str) -> RepositoryRef:
        # 202 Accepted: the body describes the fork before it is queryable
        resp = self._request("POST", f"/repos/{repo}/forks", json={})
        return _repository_from_api(resp.json())

    def get_ref(self, repo: str, branch: str) -> BranchState:
        data = self._request("GET", f"/repos/{repo}/git/ref/heads/{branch}").json()
        return BranchState(repo=repo, branch=branch, sha=data["object"]["sha"])

    def create_ref(self, repo: str, branch: str, sha: str) -> BranchState:
        data = self._request(
            "POST",
            f"/repos/{repo}/git/refs",
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        ).json()
        return BranchState(repo=repo, branch=branch, sha=data.get("object", {}).get("sha", sha))

    def update_ref(self, repo: str, branch: str, sha: str, force: bool = False) -> BranchState:
        data = self._request(
            "PATCH",
            f"/repos/{repo}/git/refs/heads/{branch}",
            json={"sha": sha, "force": force},
        ).json()
        return BranchState(repo=repo, branch=branch, sha=data.get("object", {}).get("sha", sha))

    def get_file(self, repo: str, path: str, ref: str) -> RemoteFile:
        data = self._request(
            "GET",
            f"/repos/{repo}/contents/{path.lstrip('/')}",
            params={"ref": ref},
        ).json()
        if not isinstance(data, dict) or data.get("type") != "file":
            raise GitPlatformError(f"Not a file: {path}")
        if data.get("encoding") == "none":
            # Contents API leaves files over 1 MB empty; the blob API still has them
            blob = self._request("GET", f"/repos/{repo}/git/blobs/{data['sha']}").json()
            if blob.get("encoding") != "base64":
                raise GitPlatformError(f"Unsupported blob encoding for {path}: {blob.get('encoding')}")
            content = base64.b64decode(blob.get("content") or "")
        else:
            content = base64.b64decode(data.get("content") or "")
        return RemoteFile(path=data.get("path", path), content=content, sha=data["sha"])

    def put_file(
        self,
        repo: str,
        path: str,
        content: bytes,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> str:
        payload: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": branch,
        }
        if sha is not None:
            payload["sha"] = sha
        data = self._request("PUT", f"/repos/{repo}/contents/{path.lstrip('/')}", json=payload).json()
        return data["content"]["sha"]

    def list_pull_requests(
        self,
        repo: str,
        head: str | None = None,
        base: str | None = None,
        state: str = "open",
    ) -> List[PullRequestRecord]:
        params: Dict[str, Any] = {"state": state, "per_page": 100}
        if head:
            params["head"] = head
        if base:
            params["base"] = base
        data = self._request("GET", f"/repos/{repo}/pulls", params=params).json() or []
        return [_pr_from_api(repo, d) for d in data]

    def create_pull_request(
        self,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
        maintainer_can_modify: bool = True,
    ) -> PullRequestRecord:
        resp = self._request(
            "POST",
            f"/repos/{repo}/pulls",
            json={
                "title": title,
                "body": body or "",
                "head": head,
                "base": base,
                "maintainer_can_modify": maintainer_can_modify,
            },
        )
        return _pr_from_api(repo, resp.json())

    def create_issue_comment(self, repo: str, number: int, body: str) -> Comment:
        resp = self._request("POST", f"/repos/{repo}/issues/{number}/comments", json={"body": body})
        return _comment_from_api(resp.json())

    def get_authenticated_user(self) -> Identity:
        return _identity_from_api(self._request("GET", "/user").json())

    def get_user(self, login: str) -> Identity:
        return _identity_from_api(self._request("GET", f"/users/{login}").json())
