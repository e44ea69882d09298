"""Git hosting adapters (base and implementations)."""

from modpub.adapters.base import GitPlatformError, HostingAdapter, NotFoundError
from modpub.adapters.github import GitHubAdapter

__all__ = ["GitHubAdapter", "GitPlatformError", "HostingAdapter", "NotFoundError"]
