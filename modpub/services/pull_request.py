"""Open the catalog pull request, or comment on the one already open."""

import logging
from datetime import datetime, timezone
from typing import List

from modpub.adapters.base import HostingAdapter
from modpub.models import Comment, Identity, PullRequestRecord, RepositoryRef

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class NegotiationResult:
    """Outcome of ensure_pull_request."""

    def __init__(
        self,
        pull_request: PullRequestRecord,
        created: bool,
        comment: Comment | None = None,
    ) -> None:
        self.pull_request = pull_request
        self.created = created
        self.comment = comment


def _created_key(pr: PullRequestRecord) -> tuple:
    created = pr.created_at or _EPOCH
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return (created, pr.number)


def pick_existing(candidates: List[PullRequestRecord]) -> PullRequestRecord | None:
    """Most recently created pull request; ties broken by the higher number."""
    if not candidates:
        return None
    return max(candidates, key=_created_key)


def find_own_pull_requests(
    adapter: HostingAdapter,
    upstream: RepositoryRef,
    head: str,
    identity: Identity,
) -> List[PullRequestRecord]:
    """Open pull requests into ``upstream`` from ``head`` authored by
    ``identity``."""
    prs = adapter.list_pull_requests(
        upstream.full_name,
        head=head,
        base=upstream.default_branch,
        state="open",
    )
    login = identity.login.casefold()
    return [pr for pr in prs if pr.author.casefold() == login and (not pr.head or pr.head == head)]


def ensure_pull_request(
    adapter: HostingAdapter,
    upstream: RepositoryRef,
    fork: RepositoryRef,
    branch: str,
    identity: Identity,
    title: str,
    body: str,
    update_comment: str,
    log: logging.Logger | None = None,
) -> NegotiationResult:
    """Ensure one open pull request from ``fork:branch`` into the upstream
    default branch.

    When ``identity`` already has one open, ``update_comment`` is posted on
    it and its title and body are left as they are. Otherwise a new pull
    request is opened with maintainer edits allowed.
    """
    logger = log or logging.getLogger("modpub.pull_request")
    head = f"{fork.owner}:{branch}"
    own = find_own_pull_requests(adapter, upstream, head, identity)
    if len(own) > 1:
        logger.warning(
            "Found %s open pull requests from %s for %s, using the newest",
            len(own),
            identity.login,
            head,
        )
    existing = pick_existing(own)
    if existing is not None:
        logger.info("Pull request #%s already open for %s, posting update", existing.number, head)
        comment = adapter.create_issue_comment(upstream.full_name, existing.number, update_comment)
        return NegotiationResult(existing, created=False, comment=comment)

    pr = adapter.create_pull_request(
        upstream.full_name,
        title=title,
        body=body,
        head=head,
        base=upstream.default_branch,
        maintainer_can_modify=True,
    )
    logger.info("Made PR at %s", pr.html_url or f"{upstream.full_name}#{pr.number}")
    return NegotiationResult(pr, created=True)
