"""Idempotent file writes on the integration branch.

Every write carries an explicit precondition: ``Create`` when the file could
not be read, ``UpdateIfUnchanged(token)`` when it could. GitHub rejects an
update whose token no longer matches, which guards against the branch
moving between read and write. Rejected writes are not retried here.
"""

import logging
from typing import Iterable, List, Sequence, Tuple

from modpub.adapters.base import GitPlatformError, HostingAdapter
from modpub.errors import ContentConflictError
from modpub.models import Create, FileWrite, Precondition, RemoteFile, UpdateIfUnchanged


def _is_conflict(e: GitPlatformError) -> bool:
    # 409 for a stale sha; 422 for a missing one, but 422 also covers unrelated validation errors
    if e.status_code == 409:
        return True
    return e.status_code == 422 and "sha" in str(e).lower()


def _read(adapter: HostingAdapter, repo: str, path: str, branch: str) -> RemoteFile | None:
    try:
        return adapter.get_file(repo, path, branch)
    except GitPlatformError:
        return None


def read_precondition(adapter: HostingAdapter, repo: str, path: str, branch: str) -> Precondition:
    """Return the write precondition for ``path`` on ``branch``.

    Any read failure (missing file, missing ref, API error) means the
    write will try to create the file.
    """
    current = _read(adapter, repo, path, branch)
    if current is None:
        return Create()
    return UpdateIfUnchanged(current.sha)


def write_file(
    adapter: HostingAdapter,
    repo: str,
    branch: str,
    write: FileWrite,
    log: logging.Logger | None = None,
) -> str:
    """Commit one FileWrite and return the resulting revision token.

    Raises:
        ContentConflictError: If the hosting API rejected the precondition.
    """
    logger = log or logging.getLogger("modpub.content")
    logger.info("Committing %s to %s:%s (%r)", write.path, repo, branch, write.precondition)
    try:
        return adapter.put_file(
            repo,
            write.path,
            write.content,
            write.message,
            branch,
            sha=write.precondition.token,
        )
    except GitPlatformError as e:
        if _is_conflict(e):
            raise ContentConflictError(repo, branch, write.path, e) from e
        raise


def publish_file(
    adapter: HostingAdapter,
    repo: str,
    branch: str,
    path: str,
    content: bytes,
    message: str,
    log: logging.Logger | None = None,
) -> str:
    """Create or update ``path`` on ``branch`` with ``content``.

    Safe to re-run: the second run reads the revision produced by the first
    and updates against it.
    """
    write = FileWrite(path, content, message, read_precondition(adapter, repo, path, branch))
    return write_file(adapter, repo, branch, write, log=log)


def publish_files(
    adapter: HostingAdapter,
    repo: str,
    branch: str,
    files: Sequence[Tuple[str, bytes, str]],
    log: logging.Logger | None = None,
) -> List[str]:
    """Publish ``(path, content, message)`` triples in order."""
    return [publish_file(adapter, repo, branch, path, content, message, log=log) for path, content, message in files]


def parse_lines(text: str) -> List[str]:
    """Non-empty, stripped lines of a newline-delimited list."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def contains_line(entries: Iterable[str], line: str) -> bool:
    """Case-insensitive membership test."""
    wanted = line.strip().casefold()
    return any(entry.strip().casefold() == wanted for entry in entries)


def append_unique_line(
    adapter: HostingAdapter,
    repo: str,
    branch: str,
    path: str,
    line: str,
    message: str,
    known: Iterable[str] = (),
    log: logging.Logger | None = None,
) -> bool:
    """Append ``line`` to a newline-delimited list file unless present.

    Membership is case-insensitive and also considers ``known`` entries
    (e.g. the upstream copy of the same file).

    Returns:
        True if a commit was made.
    """
    logger = log or logging.getLogger("modpub.content")
    current = _read(adapter, repo, path, branch)
    text = current.text if current is not None else ""
    entries = parse_lines(text) + list(known)
    if contains_line(entries, line):
        logger.info("%s already lists %s", path, line)
        return False

    if text and not text.endswith("\n"):
        text += "\n"
    new_text = f"{text}{line.strip()}\n"
    precondition: Precondition = UpdateIfUnchanged(current.sha) if current is not None else Create()
    write_file(adapter, repo, branch, FileWrite(path, new_text.encode("utf-8"), message, precondition), log=logger)
    logger.info("Added %s to %s", line, path)
    return True
