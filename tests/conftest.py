"""Shared fixtures: an in-memory hosting platform.

FakeHosting models repositories, branches, commits (as full file trees) and
pull requests closely enough to exercise forking latency, forced ref
updates and optimistic-concurrency writes.
"""

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Tuple

import pytest

from modpub.adapters.base import GitPlatformError, HostingAdapter, NotFoundError
from modpub.models import BranchState, Comment, Identity, PullRequestRecord, RemoteFile, RepositoryRef

Tree = Dict[str, Tuple[bytes, str]]


def blob_sha(content: bytes) -> str:
    return hashlib.sha1(b"blob\0" + content).hexdigest()


class FakeHosting(HostingAdapter):
    """HostingAdapter backed by dicts."""

    def __init__(self, login: str = "alice") -> None:
        self.me = Identity(login=login, avatar_url=f"https://avatars.example/{login}")
        self.users: Dict[str, Identity] = {login: self.me}
        self.repos: Dict[str, dict] = {}
        self.branches: Dict[str, Dict[str, str]] = {}
        self.commits: Dict[str, Tree] = {}
        self.pulls: Dict[str, List[PullRequestRecord]] = {}
        self.comments: List[Tuple[str, int, str]] = []
        self.calls: List[tuple] = []
        self.protected: set = set()
        # Number of get_repository calls a new fork stays invisible for
        self.fork_delay_polls = 0
        self._hidden: Dict[str, int] = {}
        self._counter = 0
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    # -- setup helpers -------------------------------------------------

    def _commit(self, tree: Tree) -> str:
        self._counter += 1
        sha = hashlib.sha1(f"commit-{self._counter}".encode()).hexdigest()
        self.commits[sha] = dict(tree)
        return sha

    def _tick(self) -> datetime:
        self._clock += timedelta(minutes=1)
        return self._clock

    def add_user(self, login: str) -> Identity:
        self.users[login] = Identity(login=login, avatar_url=f"https://avatars.example/{login}")
        return self.users[login]

    def add_repo(
        self,
        full_name: str,
        files: Dict[str, str] | None = None,
        default_branch: str = "main",
        fork: bool = False,
        parent: str | None = None,
        homepage: str | None = None,
    ) -> str:
        tree = {path: (text.encode(), blob_sha(text.encode())) for path, text in (files or {}).items()}
        self.repos[full_name] = {
            "default_branch": default_branch,
            "fork": fork,
            "parent": parent,
            "homepage": homepage,
        }
        self.branches[full_name] = {default_branch: self._commit(tree)}
        self.pulls.setdefault(full_name, [])
        return full_name

    def commit_file(self, repo: str, branch: str, path: str, text: str) -> str:
        tree = dict(self.commits[self.branches[repo][branch]])
        tree[path] = (text.encode(), blob_sha(text.encode()))
        sha = self._commit(tree)
        self.branches[repo][branch] = sha
        return sha

    def file_text(self, repo: str, branch: str, path: str) -> str | None:
        entry = self.commits[self.branches[repo][branch]].get(path)
        return entry[0].decode() if entry else None

    def tree(self, repo: str, branch: str) -> Dict[str, bytes]:
        return {p: c for p, (c, _) in self.commits[self.branches[repo][branch]].items()}

    def head(self, repo: str, branch: str) -> str:
        return self.branches[repo][branch]

    def add_pull(self, repo: str, head: str, author: str, number: int | None = None) -> PullRequestRecord:
        pulls = self.pulls.setdefault(repo, [])
        pr = PullRequestRecord(
            number=number or len(pulls) + 1,
            repo=repo,
            head=head,
            base_branch=self.repos[repo]["default_branch"],
            title="existing",
            body="existing body",
            author=author,
            created_at=self._tick(),
            html_url=f"https://example.test/{repo}/pull/{number or len(pulls) + 1}",
        )
        pulls.append(pr)
        return pr

    def called(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    # -- HostingAdapter ------------------------------------------------

    def _ref(self, full_name: str, with_parent: bool = True) -> RepositoryRef:
        data = self.repos[full_name]
        owner, name = full_name.split("/")
        parent = None
        if with_parent and data["parent"]:
            parent = self._ref(data["parent"], with_parent=False)
        return RepositoryRef(
            owner=owner,
            name=name,
            default_branch=data["default_branch"],
            fork=data["fork"],
            parent=parent,
            html_url=f"https://github.com/{full_name}",
            homepage=data["homepage"],
        )

    def get_repository(self, repo: str) -> RepositoryRef:
        self.calls.append(("get_repository", repo))
        if self._hidden.get(repo, 0) > 0:
            self._hidden[repo] -= 1
            raise NotFoundError(f"Not found: /repos/{repo}")
        if repo not in self.repos:
            raise NotFoundError(f"Not found: /repos/{repo}")
        return self._ref(repo)

    def create_fork(self, repo: str) -> RepositoryRef:
        self.calls.append(("create_fork", repo))
        if repo not in self.repos:
            raise NotFoundError(f"Not found: /repos/{repo}/forks")
        name = repo.split("/")[1]
        fork_name = f"{self.me.login}/{name}"
        if fork_name not in self.repos:
            upstream = self.repos[repo]
            self.repos[fork_name] = {
                "default_branch": upstream["default_branch"],
                "fork": True,
                "parent": repo,
                "homepage": None,
            }
            self.branches[fork_name] = dict(self.branches[repo])
            self.pulls.setdefault(fork_name, [])
            self._hidden[fork_name] = self.fork_delay_polls
        data = self.repos[fork_name]
        return RepositoryRef(
            owner=self.me.login,
            name=name,
            default_branch=data["default_branch"],
            fork=True,
            parent=self._ref(repo, with_parent=False),
        )

    def get_ref(self, repo: str, branch: str) -> BranchState:
        self.calls.append(("get_ref", repo, branch))
        sha = self.branches.get(repo, {}).get(branch)
        if sha is None:
            raise NotFoundError(f"Not found: /repos/{repo}/git/ref/heads/{branch}")
        return BranchState(repo, branch, sha)

    def create_ref(self, repo: str, branch: str, sha: str) -> BranchState:
        self.calls.append(("create_ref", repo, branch, sha))
        if branch in self.branches[repo]:
            raise GitPlatformError("GitHub API error 422: Reference already exists", status_code=422)
        self.branches[repo][branch] = sha
        return BranchState(repo, branch, sha)

    def update_ref(self, repo: str, branch: str, sha: str, force: bool = False) -> BranchState:
        self.calls.append(("update_ref", repo, branch, sha, force))
        if (repo, branch) in self.protected or branch not in self.branches[repo]:
            raise GitPlatformError("GitHub API error 422: Update is not a fast forward", status_code=422)
        self.branches[repo][branch] = sha
        return BranchState(repo, branch, sha)

    def get_file(self, repo: str, path: str, ref: str) -> RemoteFile:
        self.calls.append(("get_file", repo, path, ref))
        sha = self.branches.get(repo, {}).get(ref)
        if sha is None or path not in self.commits[sha]:
            raise NotFoundError(f"Not found: /repos/{repo}/contents/{path}")
        content, blob = self.commits[sha][path]
        return RemoteFile(path, content, blob)

    def put_file(
        self,
        repo: str,
        path: str,
        content: bytes,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> str:
        self.calls.append(("put_file", repo, path, branch, sha, message))
        tree = dict(self.commits[self.branches[repo][branch]])
        existing = tree.get(path)
        if sha is None and existing is not None:
            raise GitPlatformError('GitHub API error 422: "sha" wasn\'t supplied.', status_code=422)
        if sha is not None and (existing is None or existing[1] != sha):
            raise GitPlatformError(f"GitHub API error 409: {path} does not match {sha}", status_code=409)
        blob = blob_sha(content)
        tree[path] = (content, blob)
        self.branches[repo][branch] = self._commit(tree)
        return blob

    def list_pull_requests(
        self,
        repo: str,
        head: str | None = None,
        base: str | None = None,
        state: str = "open",
    ) -> List[PullRequestRecord]:
        self.calls.append(("list_pull_requests", repo, head, base, state))
        return [
            pr
            for pr in self.pulls.get(repo, [])
            if pr.state == state and (head is None or pr.head == head) and (base is None or pr.base_branch == base)
        ]

    def create_pull_request(
        self,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
        maintainer_can_modify: bool = True,
    ) -> PullRequestRecord:
        self.calls.append(("create_pull_request", repo, title, head, base, maintainer_can_modify))
        pulls = self.pulls.setdefault(repo, [])
        number = max((pr.number for pr in pulls), default=0) + 1
        pr = PullRequestRecord(
            number=number,
            repo=repo,
            head=head,
            base_branch=base,
            title=title,
            body=body,
            author=self.me.login,
            created_at=self._tick(),
            html_url=f"https://github.com/{repo}/pull/{number}",
        )
        pulls.append(pr)
        return pr

    def create_issue_comment(self, repo: str, number: int, body: str) -> Comment:
        self.calls.append(("create_issue_comment", repo, number, body))
        self.comments.append((repo, number, body))
        return Comment(id=len(self.comments), body=body, author=self.me.login, created_at=self._tick())

    def get_authenticated_user(self) -> Identity:
        self.calls.append(("get_authenticated_user",))
        return self.me

    def get_user(self, login: str) -> Identity:
        self.calls.append(("get_user", login))
        if login not in self.users:
            raise NotFoundError(f"Not found: /users/{login}")
        return self.users[login]


@pytest.fixture
def hosting() -> FakeHosting:
    """Catalog ``catalog/mods`` with one upstream commit, no fork yet."""
    fake = FakeHosting(login="alice")
    fake.add_repo(
        "catalog/mods",
        files={"README.md": "# Mods\n", "repo-blacklist.txt": "someone/old-mod\n"},
    )
    return fake


@pytest.fixture
def forked(hosting: FakeHosting) -> FakeHosting:
    """Same catalog with ``alice/mods`` already forked and visible."""
    hosting.create_fork("catalog/mods")
    hosting.calls.clear()
    return hosting
