"""Publish pipeline stages: fork, branch, content, pull request."""

from modpub.services.branch import ensure_branch, rebuild_branch, sync_default_branch
from modpub.services.content import append_unique_line, publish_file, publish_files, read_precondition
from modpub.services.fork import resolve_fork
from modpub.services.pull_request import NegotiationResult, ensure_pull_request
from modpub.services.retry import RetryExhaustedError, retry_with_delay

__all__ = [
    "NegotiationResult",
    "RetryExhaustedError",
    "append_unique_line",
    "ensure_branch",
    "ensure_pull_request",
    "publish_file",
    "publish_files",
    "read_precondition",
    "rebuild_branch",
    "resolve_fork",
    "retry_with_delay",
    "sync_default_branch",
]
