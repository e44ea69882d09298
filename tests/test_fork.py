"""Tests for the fork resolver."""

from unittest.mock import MagicMock

import pytest

from modpub.adapters.base import NotFoundError
from modpub.errors import NotAForkError, ProvisioningTimeoutError
from modpub.models import RepositoryRef
from modpub.services.fork import resolve_fork


class FakeSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def test_existing_fork_returned_without_creating(forked) -> None:
    """A visible fork is returned on the fast path; no fork is requested."""
    sleep = FakeSleep()
    fork = resolve_fork(forked, "alice", "mods", "catalog/mods", sleep=sleep)

    assert fork.full_name == "alice/mods"
    assert fork.fork is True
    assert fork.parent is not None and fork.parent.full_name == "catalog/mods"
    assert forked.called("create_fork") == []
    assert sleep.calls == []


def test_fork_created_and_polled_until_visible(hosting) -> None:
    """Provisioning latency within the budget is waited out."""
    hosting.fork_delay_polls = 3
    sleep = FakeSleep()

    fork = resolve_fork(hosting, "alice", "mods", "catalog/mods", attempts=5, delay=2.0, sleep=sleep)

    assert fork.full_name == "alice/mods"
    assert hosting.called("create_fork") == [("create_fork", "catalog/mods")]
    assert sleep.calls == [2.0, 2.0, 2.0]


def test_fork_never_visible_raises_timeout(hosting) -> None:
    """Latency beyond the budget fails with the expected coordinates."""
    hosting.fork_delay_polls = 10
    sleep = FakeSleep()

    with pytest.raises(ProvisioningTimeoutError) as exc_info:
        resolve_fork(hosting, "alice", "mods", "catalog/mods", attempts=3, delay=1.0, sleep=sleep)

    assert "alice/mods" in str(exc_info.value)
    assert exc_info.value.attempts == 3
    assert len(sleep.calls) == 2


def test_non_fork_at_coordinates_is_rejected(hosting) -> None:
    """A same-named repository that is not a fork fails, even though the name
    matches."""
    hosting.add_repo("alice/mods")

    with pytest.raises(NotAForkError) as exc_info:
        resolve_fork(hosting, "alice", "mods", "catalog/mods")

    assert "not a fork" in str(exc_info.value)
    assert hosting.called("create_fork") == []


def test_fork_of_another_upstream_is_rejected(hosting) -> None:
    """A fork whose parent is a different repository is not accepted."""
    hosting.add_repo("other/mods")
    hosting.add_repo("alice/mods", fork=True, parent="other/mods")

    with pytest.raises(NotAForkError) as exc_info:
        resolve_fork(hosting, "alice", "mods", "catalog/mods")
    assert "other/mods" in str(exc_info.value)


def test_missing_upstream_propagates(hosting) -> None:
    """Upstream not found surfaces as NotFoundError unchanged."""
    with pytest.raises(NotFoundError):
        resolve_fork(hosting, "alice", "nothing", "catalog/nothing")


def test_provisioned_repository_without_fork_flag_is_rejected() -> None:
    """The fork flag is checked after polling too."""
    adapter = MagicMock()
    adapter.create_fork.return_value = RepositoryRef("alice", "mods", "main", fork=True)
    adapter.get_repository.side_effect = [
        NotFoundError("Not found: /repos/alice/mods"),
        RepositoryRef("alice", "mods", "main", fork=False, html_url="https://github.com/alice/mods"),
    ]

    with pytest.raises(NotAForkError) as exc_info:
        resolve_fork(adapter, "alice", "mods", "catalog/mods", sleep=lambda s: None)
    assert "https://github.com/alice/mods" in str(exc_info.value)
