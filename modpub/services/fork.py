"""Find or provision the personal fork of the catalog repository."""

import logging
import time
from typing import Callable

from modpub.adapters.base import HostingAdapter, NotFoundError
from modpub.errors import NotAForkError, ProvisioningTimeoutError
from modpub.models import RepositoryRef
from modpub.services.retry import RetryExhaustedError, retry_with_delay

DEFAULT_POLL_ATTEMPTS = 10
DEFAULT_POLL_DELAY = 5.0


def _checked_fork(repo: RepositoryRef, upstream: str) -> RepositoryRef:
    """Return ``repo`` if it really is a fork with a parent, else raise."""
    if not repo.fork:
        raise NotAForkError(
            repo.html_url or repo.full_name,
            upstream,
            "a different repository already exists at these coordinates",
        )
    if repo.parent is None:
        raise NotAForkError(repo.full_name, upstream, "the hosting API reported no parent")
    if repo.parent.full_name.casefold() != upstream.casefold():
        raise NotAForkError(repo.full_name, upstream, f"it was forked from {repo.parent.full_name}")
    return repo


def resolve_fork(
    adapter: HostingAdapter,
    fork_owner: str,
    fork_name: str,
    upstream: str,
    *,
    attempts: int = DEFAULT_POLL_ATTEMPTS,
    delay: float = DEFAULT_POLL_DELAY,
    sleep: Callable[[float], None] = time.sleep,
    log: logging.Logger | None = None,
) -> RepositoryRef:
    """Return the fork at ``fork_owner/fork_name``, creating it from
    ``upstream`` when it does not exist yet.

    Fork creation is asynchronous on GitHub, so after requesting it the
    fork is polled for up to ``attempts * delay`` seconds.

    Args:
        adapter: Hosting API adapter.
        fork_owner: Login that owns (or will own) the fork.
        fork_name: Repository name of the fork.
        upstream: Upstream repository in format owner/repo.
        attempts: Poll budget after requesting the fork.
        delay: Seconds between polls.
        sleep: Sleep function (injectable for tests).
        log: Optional logger.

    Returns:
        RepositoryRef of the fork, with ``parent`` set.

    Raises:
        NotFoundError: If the upstream repository does not exist.
        ProvisioningTimeoutError: If the fork never became visible.
        NotAForkError: If the repository found is not a fork.
    """
    logger = log or logging.getLogger("modpub.fork")
    coordinate = f"{fork_owner}/{fork_name}"
    logger.info("Getting fork %s of %s", coordinate, upstream)
    try:
        existing = adapter.get_repository(coordinate)
    except NotFoundError:
        existing = None
    if existing is not None:
        return _checked_fork(existing, upstream)

    logger.warning("Failed to find a fork of %s at %s, creating it now", upstream, coordinate)
    requested = adapter.create_fork(upstream)
    expected = requested.full_name
    logger.info("Fork requested, waiting for %s to become available", expected)

    try:
        fork = retry_with_delay(
            lambda: adapter.get_repository(expected),
            attempts=attempts,
            delay=delay,
            retry_on=(NotFoundError,),
            sleep=sleep,
            log=logger,
        )
    except RetryExhaustedError as e:
        raise ProvisioningTimeoutError(expected, e.attempts) from e.last_error

    logger.info("Fork %s is available", fork.full_name)
    return _checked_fork(fork, upstream)
