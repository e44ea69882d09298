"""modpub: publish mod packages to a community catalog through forks and pull requests."""

__version__ = "0.1.0"
