"""Data models for repositories, refs, files, pull requests and users."""

from datetime import datetime


class RepositoryRef:
    """Hosted repository.

    A fork carries its upstream as ``parent``; the parent itself is not
    expanded further (one level, as the hosting API returns it).
    """

    def __init__(
        self,
        owner: str,
        name: str,
        default_branch: str,
        fork: bool = False,
        parent: "RepositoryRef | None" = None,
        html_url: str | None = None,
        homepage: str | None = None,
    ) -> None:
        self.owner = owner
        self.name = name
        self.default_branch = default_branch or "main"
        self.fork = fork
        self.parent = parent
        self.html_url = html_url
        self.homepage = homepage

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __repr__(self) -> str:
        return f"RepositoryRef({self.full_name!r}, fork={self.fork})"


class BranchState:
    """Named ref on a repository pointing at a commit."""

    def __init__(self, repo: str, branch: str, sha: str) -> None:
        self.repo = repo
        self.branch = branch
        self.sha = sha

    def __repr__(self) -> str:
        return f"BranchState({self.repo}:{self.branch} @ {self.sha[:7]})"


class RemoteFile:
    """File read from a branch, with the revision token needed to update it."""

    def __init__(self, path: str, content: bytes, sha: str) -> None:
        self.path = path
        self.content = content
        self.sha = sha

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


class Create:
    """Write precondition: the file must not exist yet."""

    token = None

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Create)

    def __repr__(self) -> str:
        return "Create()"


class UpdateIfUnchanged:
    """Write precondition: the file is still at revision ``token``."""

    def __init__(self, token: str) -> None:
        if not token:
            raise ValueError("UpdateIfUnchanged requires a revision token")
        self.token = token

    def __eq__(self, other: object) -> bool:
        return isinstance(other, UpdateIfUnchanged) and other.token == self.token

    def __repr__(self) -> str:
        return f"UpdateIfUnchanged({self.token!r})"


Precondition = Create | UpdateIfUnchanged


class FileWrite:
    """One file to commit on a branch."""

    def __init__(
        self,
        path: str,
        content: bytes,
        message: str,
        precondition: Precondition | None = None,
    ) -> None:
        self.path = path
        self.content = content
        self.message = message
        self.precondition = precondition or Create()


class PullRequestRecord:
    """Pull request as returned by the hosting API."""

    def __init__(
        self,
        number: int,
        repo: str,
        head: str,
        base_branch: str,
        title: str,
        body: str,
        author: str,
        state: str = "open",
        created_at: datetime | None = None,
        html_url: str | None = None,
    ) -> None:
        self.number = number
        self.repo = repo
        self.head = head
        self.base_branch = base_branch
        self.title = title
        self.body = body or ""
        self.author = author
        self.state = state
        self.created_at = created_at
        self.html_url = html_url


class Comment:
    """Comment on an issue or PR."""

    def __init__(
        self,
        id: int,
        body: str,
        author: str,
        created_at: datetime | None = None,
        html_url: str | None = None,
    ) -> None:
        self.id = id
        self.body = body
        self.author = author
        self.created_at = created_at
        self.html_url = html_url


class Identity:
    """User account (the acting identity or a looked-up login)."""

    def __init__(self, login: str, avatar_url: str | None = None, html_url: str | None = None) -> None:
        self.login = login
        self.avatar_url = avatar_url
        self.html_url = html_url

