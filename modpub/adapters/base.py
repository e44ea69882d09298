"""Abstract base class for the Git hosting capability used by the publisher."""

from abc import ABC, abstractmethod
from typing import List

from modpub.models import BranchState, Comment, Identity, PullRequestRecord, RemoteFile, RepositoryRef


class GitPlatformError(Exception):
    """Raised when a Git platform API call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(GitPlatformError):
    """Raised when the requested repository, ref, file or user does not
    exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)


class HostingAdapter(ABC):
    """Repository, ref, content and pull-request operations on a hosting
    platform.

    Repositories are addressed as ``owner/name``. Every call goes to the
    remote; adapters hold no cached state.
    """

    @abstractmethod
    def get_repository(self, repo: str) -> RepositoryRef:
        """Fetch a repository, including its parent when it is a fork.

        Raises:
            NotFoundError: If the repository does not exist
            GitPlatformError: If the API call fails
        """

    @abstractmethod
    def create_fork(self, repo: str) -> RepositoryRef:
        """Request a fork of ``repo`` for the authenticated user.

        Forking is asynchronous on the hosting side: the returned
        coordinates may not be queryable for a while.
        """

    @abstractmethod
    def get_ref(self, repo: str, branch: str) -> BranchState:
        """Read the head commit of a branch.

        Raises:
            NotFoundError: If the branch does not exist
        """

    @abstractmethod
    def create_ref(self, repo: str, branch: str, sha: str) -> BranchState:
        """Create a branch pointing at ``sha``."""

    @abstractmethod
    def update_ref(self, repo: str, branch: str, sha: str, force: bool = False) -> BranchState:
        """Move a branch to ``sha``; ``force`` allows non-fast-forward moves."""

    @abstractmethod
    def get_file(self, repo: str, path: str, ref: str) -> RemoteFile:
        """Read a file and its revision token at ``ref``.

        Raises:
            NotFoundError: If the file does not exist at ``ref``
        """

    @abstractmethod
    def put_file(
        self,
        repo: str,
        path: str,
        content: bytes,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> str:
        """Create or update a file with one commit on ``branch``.

        Args:
            repo: Repository in format owner/repo
            path: File path inside the repository
            content: Raw file content
            message: Commit message
            branch: Branch to commit to
            sha: Revision token the file must still have; None creates the file

        Returns:
            Revision token of the written file
        """

    @abstractmethod
    def list_pull_requests(
        self,
        repo: str,
        head: str | None = None,
        base: str | None = None,
        state: str = "open",
    ) -> List[PullRequestRecord]:
        """List pull requests, optionally filtered by ``owner:branch`` head and
        base branch."""

    @abstractmethod
    def create_pull_request(
        self,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
        maintainer_can_modify: bool = True,
    ) -> PullRequestRecord:
        """Open a pull request from ``head`` (``owner:branch``) into
        ``base``."""

    @abstractmethod
    def create_issue_comment(self, repo: str, number: int, body: str) -> Comment:
        """Post a comment on an issue or pull request."""

    @abstractmethod
    def get_authenticated_user(self) -> Identity:
        """Return the identity the adapter acts as."""

    @abstractmethod
    def get_user(self, login: str) -> Identity:
        """Look up a user by login."""
