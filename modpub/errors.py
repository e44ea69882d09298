"""Fatal failures of the publish pipeline.

Not-found conditions are branch points handled inside each stage and are
reported as ``NotFoundError`` by the adapter; everything here stops the run.
"""


class PublishError(Exception):
    """Base class for fatal publish pipeline errors."""

    pass


class ProvisioningTimeoutError(PublishError):
    """Fork was requested but never became visible within the poll budget."""

    def __init__(self, repo: str, attempts: int) -> None:
        super().__init__(f"Forked repo was not found at {repo} after {attempts} attempts")
        self.repo = repo
        self.attempts = attempts


class NotAForkError(PublishError):
    """Repository at the fork coordinates exists but is not a fork of the
    upstream."""

    def __init__(self, repo: str, upstream: str, detail: str = "") -> None:
        msg = f"{repo} is not a fork of {upstream}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)
        self.repo = repo
        self.upstream = upstream


class BranchRebuildError(PublishError):
    """Hosting API refused to force-move a branch."""

    def __init__(self, target: str, source: str, cause: Exception) -> None:
        super().__init__(
            f"Failed to reset {target} to {source}. "
            f"This can be fixed by performing a manual merge\nError: {cause}"
        )
        self.target = target
        self.source = source


class ContentConflictError(PublishError):
    """Precondition-checked file write was rejected."""

    def __init__(self, repo: str, branch: str, path: str, cause: Exception) -> None:
        super().__init__(
            f"Write of {path} on {repo}:{branch} was rejected because the file changed "
            f"since it was read. Manual intervention may be required\nError: {cause}"
        )
        self.path = path


class PackageError(PublishError):
    """Mod package could not be downloaded or its manifest is malformed."""

    pass
