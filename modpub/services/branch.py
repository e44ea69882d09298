"""Integration branch on the fork: create on demand and rebuild from an
upstream branch.

The integration branch never carries history of its own. Rebuilding is a
hard reset of the ref (no merge, no conflict detection); the publisher's
file writes are re-applied on top after every rebuild.
"""

import logging

from modpub.adapters.base import GitPlatformError, HostingAdapter, NotFoundError
from modpub.errors import BranchRebuildError, NotAForkError
from modpub.models import BranchState, RepositoryRef


def rebuild_branch(
    adapter: HostingAdapter,
    repo: RepositoryRef,
    branch: str,
    source: RepositoryRef,
    source_branch: str,
    log: logging.Logger | None = None,
) -> BranchState:
    """Force-move ``repo:branch`` to the head of ``source:source_branch``.

    Commits previously reachable only from ``branch`` are dropped.

    Raises:
        BranchRebuildError: If the hosting API rejects the forced update
            (protected branch, unrelated history).
    """
    logger = log or logging.getLogger("modpub.branch")
    target_label = f"{repo.owner}:{branch}"
    source_label = f"{source.owner}:{source_branch}"
    logger.info("Resetting %s to %s", target_label, source_label)

    head = adapter.get_ref(source.full_name, source_branch)
    try:
        return adapter.update_ref(repo.full_name, branch, head.sha, force=True)
    except GitPlatformError as e:
        raise BranchRebuildError(target_label, source_label, e) from e


def ensure_branch(
    adapter: HostingAdapter,
    fork: RepositoryRef,
    branch: str,
    log: logging.Logger | None = None,
) -> BranchState:
    """Make sure ``branch`` exists on ``fork`` and is rebuilt from upstream.

    An existing branch is rebuilt from the fork's own default branch. A new
    branch is created at the fork's default-branch commit and then rebuilt
    from the parent's default branch, so a fresh pull request diffs cleanly
    against the upstream.

    Returns:
        BranchState of ``branch`` after the rebuild.
    """
    logger = log or logging.getLogger("modpub.branch")
    logger.info('Checking if "%s" branch exists on %s', branch, fork.full_name)
    try:
        adapter.get_ref(fork.full_name, branch)
    except NotFoundError:
        pass
    else:
        logger.info("Branch already exists")
        return rebuild_branch(adapter, fork, branch, fork, fork.default_branch, log=logger)

    if fork.parent is None:
        raise NotAForkError(fork.full_name, "any repository", "the hosting API reported no parent")
    upstream = fork.parent

    logger.info("Branch does not exist, creating it now")
    fork_head = adapter.get_ref(fork.full_name, fork.default_branch)
    logger.info("Fork SHA: %s", fork_head.sha)
    adapter.create_ref(fork.full_name, branch, fork_head.sha)
    logger.info("Branch %s created", branch)

    state = rebuild_branch(adapter, fork, branch, upstream, upstream.default_branch, log=logger)
    logger.info("Branch %s updated", branch)
    return state


def sync_default_branch(
    adapter: HostingAdapter,
    fork: RepositoryRef,
    log: logging.Logger | None = None,
) -> BranchState:
    """Rebuild the fork's default branch from the parent's default branch."""
    if fork.parent is None:
        raise NotAForkError(fork.full_name, "any repository", "the hosting API reported no parent")
    return rebuild_branch(adapter, fork, fork.default_branch, fork.parent, fork.parent.default_branch, log=log)
