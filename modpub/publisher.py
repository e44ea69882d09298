"""Publish one mod package to the catalog.

Stage order: resolve fork, reconcile branch, write the catalog entry and
the blacklist, then open or update the pull request. Each stage re-reads
remote state; nothing is cached between runs.
"""

import logging
import time
from typing import Callable, List, Literal

import requests

from modpub.adapters.base import GitPlatformError, HostingAdapter, NotFoundError
from modpub.adapters.github import GitHubAdapter
from modpub.catalog import (
    ModManifest,
    branch_name,
    build_entry,
    commit_message,
    entry_path,
    pull_request_body,
    title,
    update_comment,
)
from modpub.config import AppConfig, CatalogConfig
from modpub.errors import NotAForkError, PublishError
from modpub.models import Identity, RepositoryRef
from modpub.package import fetch_package, read_manifest
from modpub.services.branch import ensure_branch, sync_default_branch
from modpub.services.content import append_unique_line, parse_lines, publish_file
from modpub.services.fork import resolve_fork
from modpub.services.pull_request import NegotiationResult, ensure_pull_request

RunStatus = Literal["published", "skipped", "failed"]


class PublishOutcome:
    """What a successful publish touched."""

    def __init__(
        self,
        fork: RepositoryRef,
        branch: str,
        entry_path: str,
        entry_sha: str,
        blacklist_updated: bool,
        negotiation: NegotiationResult,
    ) -> None:
        self.fork = fork
        self.branch = branch
        self.entry_path = entry_path
        self.entry_sha = entry_sha
        self.blacklist_updated = blacklist_updated
        self.negotiation = negotiation


class RunResult:
    """Terminal state of a run."""

    def __init__(
        self,
        status: RunStatus,
        outcome: PublishOutcome | None = None,
        error: str | None = None,
    ) -> None:
        self.status = status
        self.outcome = outcome
        self.error = error

    @property
    def ok(self) -> bool:
        return self.status != "failed"


def _upstream_lines(adapter: HostingAdapter, upstream: RepositoryRef, path: str) -> List[str]:
    try:
        return parse_lines(adapter.get_file(upstream.full_name, path, upstream.default_branch).text)
    except GitPlatformError:
        return []


def _source_repository(
    adapter: HostingAdapter,
    repo: str | None,
    log: logging.Logger,
) -> RepositoryRef | None:
    if not repo:
        return None
    try:
        return adapter.get_repository(repo)
    except NotFoundError:
        log.warning("Source repository %s not found, leaving source links empty", repo)
        return None


def _author_icon(
    adapter: HostingAdapter,
    source: RepositoryRef | None,
    identity: Identity,
    log: logging.Logger,
) -> str | None:
    if source is None:
        return identity.avatar_url
    try:
        return adapter.get_user(source.owner).avatar_url
    except NotFoundError:
        log.warning("User %s not found, using %s's avatar", source.owner, identity.login)
        return identity.avatar_url


def publish(
    adapter: HostingAdapter,
    manifest: ModManifest,
    package_url: str,
    catalog: CatalogConfig,
    *,
    package_bytes: bytes | None = None,
    source_repository: str | None = None,
    funding: List[str] | None = None,
    website: str | None = None,
    fork_attempts: int = 10,
    fork_delay: float = 5.0,
    sleep: Callable[[float], None] = time.sleep,
    log: logging.Logger | None = None,
) -> PublishOutcome:
    """Run every stage for ``manifest`` and return what was published.

    Raises:
        PublishError: On any fatal stage failure.
        GitPlatformError: On unexpected hosting API errors.
    """
    logger = log or logging.getLogger("modpub.publisher")

    identity = adapter.get_authenticated_user()
    logger.info("Acting as %s", identity.login)

    fork = resolve_fork(
        adapter,
        catalog.fork_owner or identity.login,
        catalog.fork_name or catalog.name,
        catalog.full_name,
        attempts=fork_attempts,
        delay=fork_delay,
        sleep=sleep,
    )
    upstream = fork.parent
    if upstream is None:
        raise NotAForkError(fork.full_name, catalog.full_name, "the hosting API reported no parent")

    if catalog.sync_fork_default_branch:
        sync_default_branch(adapter, fork)

    branch = branch_name(manifest)
    ensure_branch(adapter, fork, branch)

    source = _source_repository(adapter, source_repository, logger)
    entry = build_entry(
        manifest,
        package_url,
        author_icon=_author_icon(adapter, source, identity, logger),
        source_url=source.html_url if source else None,
        funding=funding,
        website=website or (source.homepage if source else None),
        package_bytes=package_bytes,
    )

    logger.info("Encoding catalog entry")
    path = entry_path(manifest, catalog.mods_dir)
    entry_sha = publish_file(
        adapter,
        fork.full_name,
        branch,
        path,
        entry.to_json_bytes(),
        commit_message(manifest),
    )

    blacklist_updated = False
    if source is not None:
        known = _upstream_lines(adapter, upstream, catalog.blacklist_path)
        message = f"Add {source.full_name} to {catalog.blacklist_path}"
        # The fork default branch keeps the line so rebuilt branches start with it
        append_unique_line(
            adapter,
            fork.full_name,
            fork.default_branch,
            catalog.blacklist_path,
            source.full_name,
            message,
            known=known,
        )
        blacklist_updated = append_unique_line(
            adapter,
            fork.full_name,
            branch,
            catalog.blacklist_path,
            source.full_name,
            message,
            known=known,
        )

    negotiation = ensure_pull_request(
        adapter,
        upstream,
        fork,
        branch,
        identity,
        title=title(manifest),
        body=pull_request_body(manifest),
        update_comment=update_comment(manifest, path),
    )
    return PublishOutcome(fork, branch, path, entry_sha, blacklist_updated, negotiation)


def run(
    config: AppConfig,
    adapter: HostingAdapter | None = None,
    session: requests.Session | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunResult:
    """Top-level boundary: download, parse, publish, and turn any failure
    into a failed RunResult carrying the original message.

    A package without ``mod.json`` is logged and skipped, not failed.
    """
    log = logging.getLogger("modpub")
    url = config.package_url
    if not url:
        log.error("No package URL configured")
        return RunResult("failed", error="No package URL configured")

    try:
        data = fetch_package(url, session=session)
        manifest = read_manifest(data)
        if manifest is None:
            log.error("mod.json not found in zip %s", url)
            return RunResult("skipped")

        if adapter is None:
            adapter = GitHubAdapter(
                token=config.github_token_resolved,
                api_url=config.github.api_url,
                timeout=config.github.timeout,
            )
        outcome = publish(
            adapter,
            manifest,
            url,
            config.catalog,
            package_bytes=data,
            source_repository=config.source_repository_resolved,
            funding=config.source.funding,
            website=config.source.website,
            fork_attempts=config.fork.poll_attempts,
            fork_delay=config.fork.poll_delay_seconds,
            sleep=sleep,
        )
    except (PublishError, GitPlatformError) as e:
        log.error("Publish failed: %s", e)
        return RunResult("failed", error=str(e))

    return RunResult("published", outcome=outcome)
